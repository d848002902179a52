"""
ghpilot project-drafts - Add simulate output to a GitHub project as drafts.
"""

from ghpilot.commands.publish import ensure_gh, print_result, resolve_inputs, run_options
from ghpilot.lib.config import PROJECT_STATE_FILENAME, PilotConfig, pick
from ghpilot.lib.errors import ConfigError
from ghpilot.lib.github import GhCliInvoker
from ghpilot.lib.ledger import PROJECT_LEDGER_SCHEMA, load_ledger
from ghpilot.lib.publish import ProjectDraftRun
from ghpilot.lib.summary import read_summary_csv


def cmd_project_drafts(args, config: PilotConfig) -> int:
    owner = pick(args.owner, config.project_owner)
    number = pick(args.project_number, config.project_number)
    if not owner or number is None:
        raise ConfigError(
            "Project owner and number are required. Use --owner and --project-number "
            "or set project_owner/project_number in ghpilot.yaml"
        )

    issues_dir, summary_path, state_path = resolve_inputs(
        args, config, config.project_state, PROJECT_STATE_FILENAME
    )
    options = run_options(args, config)

    rows = read_summary_csv(summary_path)
    ledger = load_ledger(state_path, PROJECT_LEDGER_SCHEMA)
    ensure_gh(args)

    run = ProjectDraftRun(
        rows,
        issues_dir,
        ledger,
        GhCliInvoker(),
        owner=owner,
        project_number=number,
        **options,
    )
    result = run.run()
    print_result(result, "project draft", f"{owner} project #{number}")
    return 0
