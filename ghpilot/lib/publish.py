"""Publish orchestration using the transitions library.

A run walks through four phases:

    resolving  -> match summary rows to draft files on disk
    filtering  -> drop items already in the ledger, apply --limit
    previewing -> (dry run) print the gh commands, touch nothing
    executing  -> create items one at a time, flushing the ledger after each
    done

Creation is strictly sequential. A gh failure stops the run; everything
created before it is already in the ledger, so re-running resumes cleanly.

Usage:
    from ghpilot.lib.publish import IssuePublishRun

    run = IssuePublishRun(rows, issues_dir, ledger, invoker, repo="me/proj")
    result = run.run()
"""

import logging
import re
import time
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from transitions import Machine

from ghpilot.lib.artifacts import slugify
from ghpilot.lib.errors import PublishError
from ghpilot.lib.github import GhInvoker, RecordingInvoker
from ghpilot.lib.ledger import Ledger
from ghpilot.lib.summary import SummaryRow

logger = logging.getLogger(__name__)


STATES = ["resolving", "filtering", "previewing", "executing", "done"]

TRANSITIONS = [
    {"trigger": "targets_resolved", "source": "resolving", "dest": "filtering"},
    {"trigger": "start_preview", "source": "filtering", "dest": "previewing"},
    {"trigger": "start_execute", "source": "filtering", "dest": "executing"},
    {"trigger": "finish", "source": "previewing", "dest": "done"},
    {"trigger": "finish", "source": "executing", "dest": "done"},
]

DRAFT_FILENAME_RE = re.compile(r'^\d+-(.+)\.md$')
TITLE_LINE_RE = re.compile(r'^# .*$')
OWNER_LINE_RE = re.compile(r'^Owner:[ \t]*(.*?)[ \t]*$', re.MULTILINE)

UNASSIGNED_SENTINEL = "unassigned"


@dataclass
class PublishTarget:
    """A summary row paired with its draft."""
    id: str
    title: str
    labels: tuple[str, ...]
    path: Path
    body: str
    assignees: list[str] = field(default_factory=list)


@dataclass
class PublishResult:
    """Outcome of a run. created is empty for dry runs."""
    planned: list[str] = field(default_factory=list)
    created: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    dry_run: bool = False


def extract_body(text: str) -> str:
    """Drop a leading "# title" line and trim surrounding whitespace."""
    lines = text.lstrip().splitlines()
    if lines and TITLE_LINE_RE.match(lines[0]):
        lines = lines[1:]
    return "\n".join(lines).strip()


def parse_owner_assignees(body: str) -> list[str]:
    """Derive assignees from the first "Owner: ..." line of a body.

    "Owner: alice, @bob" gives ["alice", "bob"]. A missing line, an empty
    value or "unassigned" gives [].
    """
    match = OWNER_LINE_RE.search(body)
    if not match:
        return []

    assignees = []
    for part in match.group(1).split(","):
        name = part.strip()
        if not name or name.lower() == UNASSIGNED_SENTINEL:
            continue
        name = name.removeprefix("@")
        if name:
            assignees.append(name)
    return assignees


def draft_stem(row: SummaryRow) -> str:
    """The "<id>-<slug>" part simulate puts after the index prefix."""
    return f"{row.id}-{slugify(row.title)}"


def build_draft_index(issues_dir: Path, rows: list[SummaryRow]) -> dict[str, Path]:
    """Map each summary row's id to its draft file.

    A draft belongs to a row when its name is "<digits>-<id>-<slug>.md" with
    the slug of the row's title, exactly as simulate names it. Every id must
    match exactly one file and every file at most one id; anything else is
    reported as an error instead of guessing.

    Raises:
        PublishError: missing directory, missing draft or ambiguous match
    """
    issues_dir = Path(issues_dir)
    if not issues_dir.is_dir():
        raise PublishError(f"Drafts directory not found: {issues_dir}")

    ids_by_stem: dict[str, list[str]] = {}
    for row in rows:
        ids_by_stem.setdefault(draft_stem(row), []).append(row.id)

    matches: dict[str, list[str]] = {row.id: [] for row in rows}
    names = sorted(p.name for p in issues_dir.iterdir() if p.is_file())
    for name in names:
        m = DRAFT_FILENAME_RE.match(name)
        if not m:
            continue
        owners = ids_by_stem.get(m.group(1), [])
        if len(owners) > 1:
            raise PublishError(
                f"Ambiguous draft file {name}: matches ids {', '.join(sorted(owners))}"
            )
        if owners:
            matches[owners[0]].append(name)

    index = {}
    for row in rows:
        found = matches[row.id]
        if not found:
            raise PublishError(
                f"No draft file found for id '{row.id}' in {issues_dir} "
                f"(expected NN-{draft_stem(row)}.md)"
            )
        if len(found) > 1:
            raise PublishError(
                f"Ambiguous drafts for id '{row.id}': {', '.join(found)}"
            )
        index[row.id] = issues_dir / found[0]
    return index


def resolve_targets(rows: list[SummaryRow], issues_dir: Path, assign_owner: bool = False) -> list[PublishTarget]:
    """Pair each summary row with its draft body, in summary order."""
    seen = set()
    for row in rows:
        if row.id in seen:
            raise PublishError(f"Duplicate id '{row.id}' in summary")
        seen.add(row.id)

    index = build_draft_index(issues_dir, rows)

    targets = []
    for row in rows:
        path = index[row.id]
        try:
            body = extract_body(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise PublishError(f"Cannot read draft {path}: {e.strerror or e}") from None
        except UnicodeDecodeError as e:
            raise PublishError(f"Cannot read draft {path}: not UTF-8 ({e.reason} at byte {e.start})") from None
        targets.append(PublishTarget(
            id=row.id,
            title=row.title,
            labels=row.labels,
            path=path,
            body=body,
            assignees=parse_owner_assignees(body) if assign_owner else [],
        ))
    return targets


def filter_resumed(targets: list[PublishTarget], done_ids: set[str]) -> tuple[list[PublishTarget], list[PublishTarget]]:
    """Split targets into (pending, already created). Order is kept."""
    pending = [t for t in targets if t.id not in done_ids]
    skipped = [t for t in targets if t.id in done_ids]
    return pending, skipped


def apply_limit(targets: list[PublishTarget], limit: int | None) -> list[PublishTarget]:
    if limit is None:
        return targets
    return targets[:max(limit, 0)]


class PublishRun:
    """One sequential publish run over a summary.

    Subclasses decide what "create" means (issue or project draft) and what
    goes into the ledger entry.
    """

    def __init__(
        self,
        rows: list[SummaryRow],
        issues_dir: Path,
        ledger: Ledger,
        invoker: GhInvoker,
        resume: bool = True,
        limit: int | None = None,
        delay: float = 0.0,
        dry_run: bool = False,
        assign_owner: bool = False,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.rows = rows
        self.issues_dir = Path(issues_dir)
        self.ledger = ledger
        self.invoker = invoker
        self.resume = resume
        self.limit = limit
        self.delay = delay
        self.dry_run = dry_run
        self.assign_owner = assign_owner
        self.sleep = sleep

        self.machine = Machine(
            model=self,
            states=STATES,
            transitions=TRANSITIONS,
            initial="resolving",
            auto_transitions=False,
            send_event=True,
            after_state_change="on_state_change",
        )

    def on_state_change(self, event) -> None:
        logger.info(
            f"[publish] {event.transition.source} -> {event.transition.dest} ({event.event.name})"
        )

    def create(self, invoker: GhInvoker, target: PublishTarget) -> dict:
        """Create one item via invoker and return its ledger entry."""
        raise NotImplementedError

    def describe(self, target: PublishTarget) -> str:
        return f"{target.id} ({target.title})"

    def run(self) -> PublishResult:
        targets = resolve_targets(self.rows, self.issues_dir, self.assign_owner)
        self.targets_resolved()

        skipped = []
        if self.resume:
            targets, skipped = filter_resumed(targets, self.ledger.ids())
            for target in skipped:
                logger.info(f"Skipping {self.describe(target)}: already recorded in {self.ledger.path}")
        targets = apply_limit(targets, self.limit)

        result = PublishResult(
            planned=[t.id for t in targets],
            skipped=[t.id for t in skipped],
            dry_run=self.dry_run,
        )

        if self.dry_run:
            self.start_preview()
            self._preview(targets)
        else:
            self.start_execute()
            self._execute(targets, result)

        self.finish()
        return result

    def _preview(self, targets: list[PublishTarget]) -> None:
        """Print the gh command for each target. No gh call, no ledger write."""
        preview = RecordingInvoker(echo=True)
        for target in targets:
            self.create(preview, target)

    def _execute(self, targets: list[PublishTarget], result: PublishResult) -> None:
        queue = deque(targets)
        first = True
        while queue:
            target = queue.popleft()
            if not first and self.delay > 0:
                self.sleep(self.delay)
            first = False

            entry = self.create(self.invoker, target)
            self.ledger.record(target.id, entry)
            result.created.append(target.id)
            logger.info(f"Created {self.describe(target)}")


class IssuePublishRun(PublishRun):
    """Creates GitHub issues with gh issue create."""

    def __init__(self, rows, issues_dir, ledger, invoker, repo: str, **kwargs):
        super().__init__(rows, issues_dir, ledger, invoker, **kwargs)
        self.repo = repo

    def create(self, invoker: GhInvoker, target: PublishTarget) -> dict:
        issue = invoker.create_issue(
            self.repo,
            target.title,
            target.body,
            labels=list(target.labels),
            assignees=target.assignees,
        )
        entry = {"title": target.title, "labels": list(target.labels)}
        if issue.url:
            entry["url"] = issue.url
        if issue.number is not None:
            entry["number"] = issue.number
        return entry


class ProjectDraftRun(PublishRun):
    """Creates GitHub project draft items with gh project item-create."""

    def __init__(self, rows, issues_dir, ledger, invoker, owner: str, project_number: int, **kwargs):
        super().__init__(rows, issues_dir, ledger, invoker, **kwargs)
        self.owner = owner
        self.project_number = project_number

    def create(self, invoker: GhInvoker, target: PublishTarget) -> dict:
        invoker.create_project_item(self.owner, self.project_number, target.title, target.body)
        return {"title": target.title}
