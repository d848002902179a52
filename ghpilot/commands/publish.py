"""
ghpilot publish - Create GitHub issues from simulate output.

Reads summary.csv, matches each row to its draft under issues/, skips ids
already recorded in the publish state file and creates the rest with gh.
"""

import logging
from pathlib import Path

from ghpilot.lib.artifacts import ISSUES_DIRNAME, SUMMARY_CSV
from ghpilot.lib.config import PUBLISH_STATE_FILENAME, PilotConfig, pick
from ghpilot.lib.errors import ConfigError, PublishError
from ghpilot.lib.github import GhCliInvoker, check_gh_available
from ghpilot.lib.ledger import ISSUE_LEDGER_SCHEMA, load_ledger
from ghpilot.lib.publish import IssuePublishRun, PublishResult
from ghpilot.lib.summary import read_summary_csv

logger = logging.getLogger(__name__)


def resolve_inputs(args, config: PilotConfig, state_value, state_default: str):
    """Work out (issues_dir, summary_path, state_path) from flags and config."""
    out_dir = Path(pick(args.out, config.out_dir))
    report_dir = Path(pick(args.report_dir, config.report_dir, out_dir))
    summary_path = Path(args.summary) if args.summary else report_dir / SUMMARY_CSV
    state_path = Path(pick(args.state, state_value, out_dir / state_default))
    logger.info(f"Summary: {summary_path}, state: {state_path}")
    return out_dir / ISSUES_DIRNAME, summary_path, state_path


def run_options(args, config: PilotConfig) -> dict:
    """Keyword arguments shared by every publish-style run."""
    if args.limit is not None and args.limit < 0:
        raise ConfigError("--limit must be zero or positive")
    delay = pick(args.delay, config.delay_seconds, 0.0)
    if delay < 0:
        raise ConfigError("--delay must be zero or positive")
    return {
        "resume": args.resume,
        "limit": args.limit,
        "delay": delay,
        "dry_run": args.dry_run,
    }


def ensure_gh(args) -> None:
    if args.dry_run:
        return
    ok, error = check_gh_available()
    if not ok:
        raise PublishError(error)


def print_result(result: PublishResult, noun: str, target: str) -> None:
    if result.dry_run:
        print(f"Dry run: {len(result.planned)} {noun}(s) would be created in {target}, "
              f"{len(result.skipped)} already recorded")
    else:
        print(f"Created {len(result.created)} {noun}(s) in {target}, "
              f"{len(result.skipped)} already recorded")


def cmd_publish(args, config: PilotConfig) -> int:
    repo = pick(args.repo, config.repo)
    if not repo:
        raise ConfigError("No repository given. Use --repo OWNER/NAME or set 'repo' in ghpilot.yaml")

    issues_dir, summary_path, state_path = resolve_inputs(
        args, config, config.publish_state, PUBLISH_STATE_FILENAME
    )
    options = run_options(args, config)

    rows = read_summary_csv(summary_path)
    ledger = load_ledger(state_path, ISSUE_LEDGER_SCHEMA)
    ensure_gh(args)

    run = IssuePublishRun(
        rows,
        issues_dir,
        ledger,
        GhCliInvoker(),
        repo=repo,
        assign_owner=bool(pick(args.assign_owner, config.assign_owner, False)),
        **options,
    )
    result = run.run()
    print_result(result, "issue", repo)
    return 0
