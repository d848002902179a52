"""
Backlog loader for gh-project-pilot.

Parses the backlog YAML document, validates it against the backlog schema
and enforces id uniqueness.
"""

import logging
import re
from dataclasses import dataclass, field, replace
from pathlib import Path

import yaml

from ghpilot.lib.errors import BacklogError, DuplicateIdError
from ghpilot.lib.validate import collect_errors

logger = logging.getLogger(__name__)

STATUSES = ("backlog", "scaffolded", "mvp", "hardened", "shipped")
DEFAULT_STATUS = "backlog"

# Same rules as backlog.schema.json, applied as full matches
ID_RE = re.compile(r'[A-Za-z0-9][A-Za-z0-9._-]*')
# No ";" (the summary label separator) and no surrounding whitespace
LABEL_RE = re.compile(r'[^;\s](?:[^;]*[^;\s])?')


@dataclass(frozen=True)
class BacklogItem:
    id: str
    title: str
    pitch: str
    owner: str | None = None
    labels: tuple[str, ...] = ()
    status: str = DEFAULT_STATUS
    tasks: tuple[str, ...] = ()
    acceptance: tuple[str, ...] = ()
    risks: tuple[str, ...] = ()


@dataclass(frozen=True)
class Backlog:
    project: str
    items: tuple[BacklogItem, ...] = field(default_factory=tuple)
    generated_by: str | None = None


def _dedupe(values: list[str]) -> tuple[str, ...]:
    """Drop repeated values, keeping the first occurrence."""
    return tuple(dict.fromkeys(values))


def _find_duplicates(ids: list[str]) -> list[str]:
    seen = set()
    duplicates = set()
    for item_id in ids:
        if item_id in seen:
            duplicates.add(item_id)
        seen.add(item_id)
    return sorted(duplicates)


def _token_problems(data, reported: list[str]) -> list[str]:
    """Ids and labels that pass the schema but are not exact tokens.

    jsonschema applies "pattern" with re.search, where "$" also matches
    before a trailing newline, so "gp-001\\n" slips through.
    """
    if not isinstance(data, dict) or not isinstance(data.get("items"), list):
        return []

    already = {problem.split(":", 1)[0] for problem in reported}
    problems = []
    for i, raw in enumerate(data["items"]):
        if not isinstance(raw, dict):
            continue
        item_id = raw.get("id")
        location = f"items.{i}.id"
        if isinstance(item_id, str) and location not in already and not ID_RE.fullmatch(item_id):
            problems.append(f"{location}: {item_id!r} is not a filename-safe id")
        labels = raw.get("labels")
        if not isinstance(labels, list):
            continue
        for j, label in enumerate(labels):
            location = f"items.{i}.labels.{j}"
            if isinstance(label, str) and location not in already and not LABEL_RE.fullmatch(label):
                problems.append(f"{location}: {label!r} is not a valid label")
    return problems


def _item_from_dict(raw: dict) -> BacklogItem:
    return BacklogItem(
        id=raw["id"],
        title=raw["title"],
        pitch=raw["pitch"],
        owner=raw.get("owner"),
        labels=_dedupe(raw.get("labels", [])),
        status=raw.get("status", DEFAULT_STATUS),
        tasks=tuple(raw.get("tasks", [])),
        acceptance=tuple(raw.get("acceptance", [])),
        risks=tuple(raw.get("risks", [])),
    )


def parse_backlog(data) -> Backlog:
    """Validate a parsed backlog document and build a Backlog.

    Structural problems are reported together in one BacklogError. Duplicate
    ids are checked only once the structure is sound and raise
    DuplicateIdError listing every repeated id.
    """
    problems = collect_errors(data, "backlog")
    problems += _token_problems(data, problems)
    if problems:
        details = "; ".join(problems)
        raise BacklogError(f"Invalid backlog ({len(problems)} problem(s)): {details}")

    items = tuple(_item_from_dict(raw) for raw in data["items"])

    duplicates = _find_duplicates([item.id for item in items])
    if duplicates:
        raise DuplicateIdError(duplicates)

    return Backlog(
        project=data["project"],
        items=items,
        generated_by=data.get("generated_by"),
    )


def load_backlog(path: Path) -> Backlog:
    """Read and validate a backlog YAML file."""
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise BacklogError(f"Cannot read backlog {path}: {e.strerror or e}") from None
    except UnicodeDecodeError as e:
        raise BacklogError(f"Cannot read backlog {path}: not UTF-8 ({e.reason} at byte {e.start})") from None

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise BacklogError(f"Invalid YAML in {path}: {e}") from None

    backlog = parse_backlog(data)
    logger.info(f"Loaded backlog '{backlog.project}' with {len(backlog.items)} item(s) from {path}")
    return backlog


def sort_backlog(backlog: Backlog) -> Backlog:
    """Return a copy of the backlog with items ordered by id.

    Python's sort is stable, so equal keys keep input order.
    """
    return replace(backlog, items=tuple(sorted(backlog.items, key=lambda item: item.id)))
