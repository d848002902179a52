"""
ghpilot validate - Check a backlog and its templates without writing anything.
"""

from pathlib import Path

from ghpilot.commands.simulate import load_templates
from ghpilot.lib.backlog import load_backlog
from ghpilot.lib.config import PilotConfig


def cmd_validate(args, config: PilotConfig) -> int:
    backlog = load_backlog(Path(args.input))
    load_templates(args, config, strict=True)
    print(f"OK: {backlog.project} ({len(backlog.items)} item(s))")
    return 0
