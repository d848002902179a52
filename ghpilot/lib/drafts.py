"""
Draft builder.

Projects a validated Backlog into issue drafts and the execution plan
document. Output depends only on the backlog, the templates and the
generation timestamp.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from ghpilot.lib.backlog import Backlog, BacklogItem
from ghpilot.lib.templates import render_template

DEFAULT_TASKS = ("Define tasks",)
DEFAULT_ACCEPTANCE = (
    "Plan exists in /plans",
    "Docs updated (PLAN/PROJECT/CHANGELOG)",
    "check passes",
)
DEFAULT_RISKS = (
    "Scope creep",
    "Missing tests",
    "Unsafe defaults",
)

UNASSIGNED = "unassigned"


@dataclass(frozen=True)
class IssueDraft:
    id: str
    title: str
    body: str
    labels: tuple[str, ...]


def status_label(status: str) -> str:
    return f"status:{status}"


def resolve_labels(item: BacklogItem) -> tuple[str, ...]:
    """Status label first, then item labels in order, first occurrence wins."""
    labels = [status_label(item.status)]
    for label in item.labels:
        if label not in labels:
            labels.append(label)
    return tuple(labels)


def render_bullets(values: tuple[str, ...], default: tuple[str, ...]) -> str:
    """Render values as "- " lines, falling back to default when empty."""
    return "\n".join(f"- {value}" for value in (values or default))


def format_timestamp(moment: datetime | None = None) -> str:
    """Format a generation timestamp as UTC ISO-8601 with a Z suffix."""
    if moment is None:
        moment = datetime.now(timezone.utc)
    elif moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")


def issue_values(project: str, item: BacklogItem, labels: tuple[str, ...]) -> dict[str, str]:
    """Placeholder values for the issue template."""
    return {
        "project": project,
        "id": item.id,
        "title": item.title,
        "pitch": item.pitch,
        "owner": item.owner or UNASSIGNED,
        "status": item.status,
        "tasks": render_bullets(item.tasks, DEFAULT_TASKS),
        "labels": ", ".join(labels),
        "acceptance": render_bullets(item.acceptance, DEFAULT_ACCEPTANCE),
    }


def build_issue_drafts(backlog: Backlog, issue_template: str) -> list[IssueDraft]:
    """Build one IssueDraft per item, in item order."""
    drafts = []
    for item in backlog.items:
        labels = resolve_labels(item)
        body = render_template(issue_template, issue_values(backlog.project, item, labels))
        drafts.append(IssueDraft(
            id=item.id,
            title=item.title,
            body=body.strip(),
            labels=labels,
        ))
    return drafts


def render_plan_section(index: int, item: BacklogItem) -> str:
    """Render one numbered plan section (index is 1-based)."""
    return "\n".join([
        f"## {index}. {item.title}",
        f"ID: {item.id}",
        item.pitch,
        f"Status: {item.status}",
        "Tasks:",
        render_bullets(item.tasks, DEFAULT_TASKS),
        "",
        "Acceptance criteria:",
        render_bullets(item.acceptance, DEFAULT_ACCEPTANCE),
        "",
        "Risks:",
        render_bullets(item.risks, DEFAULT_RISKS),
    ])


def build_plan(backlog: Backlog, plan_template: str, generated_at: str | None = None) -> str:
    """Render the execution plan for the whole backlog.

    Args:
        backlog: Validated (and possibly sorted) backlog
        plan_template: Plan template text
        generated_at: Timestamp to embed; defaults to the current UTC instant

    Returns:
        Plan text ending in exactly one newline
    """
    sections = "\n\n".join(
        render_plan_section(index, item)
        for index, item in enumerate(backlog.items, 1)
    )
    text = render_template(plan_template, {
        "project": backlog.project,
        "generated_at": generated_at or format_timestamp(),
        "items": sections,
    })
    return text.rstrip() + "\n"
