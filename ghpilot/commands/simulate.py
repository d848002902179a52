"""
ghpilot simulate - Generate the plan, issue drafts and summaries locally.

Everything is rendered in memory first; the output directory is only
touched once the backlog and templates have passed validation.
"""

from pathlib import Path

from ghpilot.lib.artifacts import clean_output_dir, write_outputs
from ghpilot.lib.backlog import load_backlog, sort_backlog
from ghpilot.lib.config import PROJECT_STATE_FILENAME, PUBLISH_STATE_FILENAME, PilotConfig, pick
from ghpilot.lib.drafts import build_issue_drafts, build_plan
from ghpilot.lib.templates import (
    ISSUE_PLACEHOLDERS,
    PLAN_PLACEHOLDERS,
    REQUIRED_ISSUE_PLACEHOLDERS,
    REQUIRED_PLAN_PLACEHOLDERS,
    check_placeholders,
    load_template,
    warn_unknown_placeholders,
)


def load_templates(args, config: PilotConfig, strict: bool) -> tuple[str, str]:
    """Load issue and plan templates, optionally checking placeholders."""
    issue_template = load_template(pick(args.issue_template, config.issue_template), "issue.md")
    plan_template = load_template(pick(args.plan_template, config.plan_template), "plan.md")

    warn_unknown_placeholders(issue_template, ISSUE_PLACEHOLDERS, "issue")
    warn_unknown_placeholders(plan_template, PLAN_PLACEHOLDERS, "plan")

    if strict:
        check_placeholders(issue_template, REQUIRED_ISSUE_PLACEHOLDERS, "issue")
        check_placeholders(plan_template, REQUIRED_PLAN_PLACEHOLDERS, "plan")

    return issue_template, plan_template


def ledgers_in(out_dir: Path, config: PilotConfig) -> set[str]:
    """Names of the resume ledgers that live directly in out_dir."""
    ledgers = [
        Path(pick(None, config.publish_state, out_dir / PUBLISH_STATE_FILENAME)),
        Path(pick(None, config.project_state, out_dir / PROJECT_STATE_FILENAME)),
    ]
    root = out_dir.resolve()
    return {path.name for path in ledgers if path.resolve().parent == root}


def print_summary(backlog, drafts, out_dir: Path | None = None) -> None:
    print(f"Backlog project: {backlog.project}")
    print(f"Items: {len(backlog.items)}")
    print(f"Issues drafted: {len(drafts)}")
    if out_dir is not None:
        print(f"Outputs: {out_dir}")


def cmd_simulate(args, config: PilotConfig) -> int:
    """Render the backlog into plan.md, issues/ and summaries."""
    backlog = load_backlog(Path(args.input))
    if pick(args.sort, config.sort, "input") == "id":
        backlog = sort_backlog(backlog)

    issue_template, plan_template = load_templates(args, config, strict=args.check_templates)

    drafts = build_issue_drafts(backlog, issue_template)
    plan = build_plan(backlog, plan_template, generated_at=args.generated_at)

    if args.dry_run:
        print_summary(backlog, drafts)
        return 0

    out_dir = Path(pick(args.out, config.out_dir))
    report_dir = pick(args.report_dir, config.report_dir)

    if args.clean:
        clean_output_dir(out_dir, keep=ledgers_in(out_dir, config))

    result = write_outputs(
        out_dir,
        plan,
        drafts,
        report_dir=Path(report_dir) if report_dir else None,
        html=bool(pick(args.html, config.html, False)),
        theme=pick(args.theme, config.theme),
    )

    print_summary(backlog, drafts, out_dir)
    if result.report:
        print(f"Report: {result.report}")
    return 0
