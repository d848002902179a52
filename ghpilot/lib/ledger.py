"""
Resume ledgers for publish runs.

A ledger records which backlog items were already created on GitHub so a
re-run skips them. The file is read once per run and rewritten in full after
every successful creation.

Concurrent runs against the same ledger file are not supported; there is no
locking.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from ghpilot.lib.validate import ValidationError, validate_before_write, validate_file

logger = logging.getLogger(__name__)

LEDGER_VERSION = 1

ISSUE_LEDGER_SCHEMA = "publish_state"
PROJECT_LEDGER_SCHEMA = "project_draft_state"


@dataclass
class Ledger:
    """In-memory ledger bound to its file and schema."""
    path: Path
    schema_name: str
    created: dict[str, dict] = field(default_factory=dict)
    loaded: bool = False  # True when an existing valid file was read

    def __contains__(self, item_id: str) -> bool:
        return item_id in self.created

    def ids(self) -> set[str]:
        return set(self.created)

    def to_dict(self) -> dict:
        return {"version": LEDGER_VERSION, "created": self.created}

    def record(self, item_id: str, entry: dict) -> None:
        """Add an entry and flush the whole ledger to disk."""
        self.created[item_id] = entry
        self.save()

    def save(self) -> None:
        data = self.to_dict()
        validate_before_write(data, self.schema_name, self.path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def load_ledger(path: Path, schema_name: str) -> Ledger:
    """Load a ledger, starting empty when the file is absent or invalid.

    A missing or invalid ledger is not fatal: the run proceeds without
    resume and a warning is logged.
    """
    path = Path(path)
    if not path.exists():
        logger.warning(f"No state file at {path}; starting without resume data")
        return Ledger(path=path, schema_name=schema_name)

    try:
        data = validate_file(path, schema_name)
    except (ValidationError, OSError, UnicodeDecodeError) as e:
        logger.warning(f"Ignoring unreadable state file {path}: {e}")
        return Ledger(path=path, schema_name=schema_name)

    return Ledger(path=path, schema_name=schema_name, created=dict(data["created"]), loaded=True)
