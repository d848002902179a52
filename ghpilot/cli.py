#!/usr/bin/env python3
"""ghpilot CLI entrypoint."""

import sys
import argparse
import logging
from pathlib import Path

from ghpilot.lib.config import load_config
from ghpilot.lib.errors import EXIT_ENV_ERROR, PilotError
from ghpilot.commands import simulate as cmd_simulate_module
from ghpilot.commands import validate as cmd_validate_module
from ghpilot.commands import publish as cmd_publish_module
from ghpilot.commands import project_drafts as cmd_project_drafts_module

VERSION = "0.1.0"


def get_config(args):
    """Load ghpilot.yaml from --config or the working directory."""
    return load_config(Path(args.config) if args.config else None)


def cmd_simulate(args):
    return cmd_simulate_module.cmd_simulate(args, get_config(args))


def cmd_validate(args):
    return cmd_validate_module.cmd_validate(args, get_config(args))


def cmd_publish(args):
    return cmd_publish_module.cmd_publish(args, get_config(args))


def cmd_project_drafts(args):
    return cmd_project_drafts_module.cmd_project_drafts(args, get_config(args))


def add_template_args(parser):
    parser.add_argument('--issue-template', help='Issue template file (default: bundled)')
    parser.add_argument('--plan-template', help='Plan template file (default: bundled)')


def add_publish_args(parser):
    parser.add_argument('--out', '-o', help='Directory holding simulate output (default: out)')
    parser.add_argument('--report-dir', help='Directory simulate wrote summaries to (default: --out)')
    parser.add_argument('--summary', help='Summary CSV (default: <report-dir>/summary.csv)')
    parser.add_argument('--state', help='Resume state file')
    parser.add_argument('--no-resume', dest='resume', action='store_false',
                        help='Do not skip items already recorded in the state file')
    parser.add_argument('--limit', type=int, help='Create at most N items')
    parser.add_argument('--delay', type=float, help='Seconds to wait between creations')
    parser.add_argument('--dry-run', action='store_true', help='Print gh commands without running them')


def build_parser():
    parser = argparse.ArgumentParser(prog='ghpilot', description='Local-first backlog to plans and issue drafts.')
    parser.add_argument('--version', action='version', version=f'%(prog)s {VERSION}')
    parser.add_argument('--config', '-c', help='Config file (default: ./ghpilot.yaml if present)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Log progress to stderr')
    subparsers = parser.add_subparsers(dest='command', required=True)

    # ghpilot simulate
    p_simulate = subparsers.add_parser('simulate', help='Generate a local plan and issue drafts from a backlog YAML file')
    p_simulate.add_argument('--input', '-i', required=True, help='Backlog YAML file')
    p_simulate.add_argument('--out', '-o', help='Output directory (default: out)')
    p_simulate.add_argument('--report-dir', help='Directory for summaries and HTML report (default: --out)')
    add_template_args(p_simulate)
    p_simulate.add_argument('--sort', choices=['input', 'id'], help='Item order (default: input)')
    p_simulate.add_argument('--generated-at', help='Timestamp to embed in plan.md (default: now, UTC)')
    p_simulate.add_argument('--html', action='store_true', default=None, help='Also write index.html')
    p_simulate.add_argument('--theme', help='HTML report theme: light or dark')
    p_simulate.add_argument('--clean', action='store_true', help='Delete the output directory first')
    p_simulate.add_argument('--check-templates', action='store_true',
                            help='Fail if templates are missing required placeholders')
    p_simulate.add_argument('--dry-run', action='store_true', help='Print summary only')
    p_simulate.set_defaults(func=cmd_simulate)

    # ghpilot validate
    p_validate = subparsers.add_parser('validate', help='Check a backlog and templates without writing')
    p_validate.add_argument('--input', '-i', required=True, help='Backlog YAML file')
    add_template_args(p_validate)
    p_validate.set_defaults(func=cmd_validate)

    # ghpilot publish
    p_publish = subparsers.add_parser('publish', help='Create GitHub issues from drafts')
    p_publish.add_argument('--repo', '-r', help='Target repository (OWNER/NAME)')
    p_publish.add_argument('--assign-owner', action='store_true', default=None,
                           help='Assign issues to the users on the Owner: line')
    add_publish_args(p_publish)
    p_publish.set_defaults(func=cmd_publish)

    # ghpilot project-drafts
    p_project = subparsers.add_parser('project-drafts', help='Add drafts to a GitHub project')
    p_project.add_argument('--owner', help='Project owner (user or organization)')
    p_project.add_argument('--project-number', type=int, help='Project number')
    add_publish_args(p_project)
    p_project.set_defaults(func=cmd_project_drafts)

    return parser


def one_line(error) -> str:
    """Collapse a multi-line error message onto one line."""
    return " ".join(line.strip() for line in str(error).splitlines() if line.strip())


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format='%(levelname)s: %(message)s',
        stream=sys.stderr,
    )

    try:
        return args.func(args)
    except PilotError as e:
        print(f"ERROR: {one_line(e)}", file=sys.stderr)
        return e.exit_code
    except OSError as e:
        print(f"ERROR: {one_line(e)}", file=sys.stderr)
        return EXIT_ENV_ERROR


if __name__ == '__main__':
    sys.exit(main())
