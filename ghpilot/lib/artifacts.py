"""
Artifact writer.

Lays out plan.md, one markdown file per issue draft and the summary files
in the output directory. Every file is written whole; nothing is appended.
"""

import csv
import io
import json
import logging
import re
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from ghpilot.lib.drafts import IssueDraft
from ghpilot.lib.errors import UnsafeCleanTarget
from ghpilot.lib.report import render_report

logger = logging.getLogger(__name__)

ISSUES_DIRNAME = "issues"
PLAN_FILENAME = "plan.md"
SUMMARY_CSV = "summary.csv"
SUMMARY_JSON = "summary.json"
REPORT_HTML = "index.html"

SUMMARY_COLUMNS = ["id", "title", "labels"]
LABEL_SEPARATOR = ";"

UNSAFE_CLEAN_TARGETS = {"", ".", "/", "./"}

SLUG_RE = re.compile(r'[^a-z0-9]+')


@dataclass
class WriteResult:
    """Paths written by write_outputs()."""
    plan: Path
    issues: list[Path] = field(default_factory=list)
    summary_csv: Path | None = None
    summary_json: Path | None = None
    report: Path | None = None


def slugify(title: str) -> str:
    slug = SLUG_RE.sub("-", title.lower()).strip("-")
    return slug or "issue"


def draft_filename(index: int, draft: IssueDraft) -> str:
    """File name for the index-th draft (1-based)."""
    return f"{index:02d}-{draft.id}-{slugify(draft.title)}.md"


def render_draft(draft: IssueDraft) -> str:
    return "\n".join([
        f"# {draft.title}",
        "",
        draft.body,
        "",
        f"Labels: {', '.join(draft.labels)}",
    ]) + "\n"


def summary_rows(drafts: list[IssueDraft]) -> list[dict[str, str]]:
    return [
        {
            "id": draft.id,
            "title": draft.title,
            "labels": LABEL_SEPARATOR.join(draft.labels),
        }
        for draft in drafts
    ]


def render_summary_csv(drafts: list[IssueDraft]) -> str:
    """Render the CSV summary with standard quoting and LF line endings."""
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=SUMMARY_COLUMNS, lineterminator="\n")
    writer.writeheader()
    writer.writerows(summary_rows(drafts))
    return buf.getvalue()


def render_summary_json(drafts: list[IssueDraft]) -> str:
    return json.dumps(summary_rows(drafts), indent=2, ensure_ascii=False) + "\n"


def write_summary_csv(drafts: list[IssueDraft], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_summary_csv(drafts), encoding="utf-8", newline="")
    return path


def write_summary_json(drafts: list[IssueDraft], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_summary_json(drafts), encoding="utf-8", newline="")
    return path


def check_clean_target(target: str | Path) -> Path:
    """Reject targets where a recursive delete would be destructive.

    Raises:
        UnsafeCleanTarget: for "", ".", "/", "./" and for paths resolving to
            the filesystem root, the working directory or the home directory
    """
    raw = str(target).strip()
    if raw in UNSAFE_CLEAN_TARGETS:
        raise UnsafeCleanTarget(f"Refusing to clean unsafe output directory '{raw}'")

    resolved = Path(raw).expanduser().resolve()
    if resolved in {Path(resolved.anchor), Path.cwd().resolve(), Path.home().resolve()}:
        raise UnsafeCleanTarget(f"Refusing to clean unsafe output directory '{raw}' ({resolved})")
    return resolved


def clean_output_dir(target: str | Path, keep: set[str] | frozenset[str] = frozenset()) -> None:
    """Delete the output directory tree before regenerating it.

    Top-level entries named in keep (the resume ledgers) survive the clean.
    """
    resolved = check_clean_target(target)
    if not resolved.exists():
        return
    if not keep:
        logger.info(f"Removing {resolved}")
        shutil.rmtree(resolved)
        return

    for child in sorted(resolved.iterdir()):
        if child.name in keep:
            logger.info(f"Keeping {child}")
        elif child.is_dir() and not child.is_symlink():
            shutil.rmtree(child)
        else:
            child.unlink()
    logger.info(f"Cleaned {resolved}")


def write_outputs(
    out_dir: Path,
    plan: str,
    drafts: list[IssueDraft],
    report_dir: Path | None = None,
    html: bool = False,
    theme: str | None = None,
) -> WriteResult:
    """Write every artifact for one simulate run.

    Args:
        out_dir: Root output directory (plan.md and issues/ go here)
        plan: Rendered plan text
        drafts: Issue drafts in output order
        report_dir: Where summaries and index.html go (defaults to out_dir)
        html: Also write the HTML report
        theme: HTML report theme name

    Returns:
        WriteResult with every path written
    """
    out_dir = Path(out_dir)
    report_dir = Path(report_dir) if report_dir else out_dir
    issues_dir = out_dir / ISSUES_DIRNAME
    issues_dir.mkdir(parents=True, exist_ok=True)

    plan_path = out_dir / PLAN_FILENAME
    plan_path.write_text(plan, encoding="utf-8", newline="")
    result = WriteResult(plan=plan_path)

    for index, draft in enumerate(drafts, 1):
        path = issues_dir / draft_filename(index, draft)
        path.write_text(render_draft(draft), encoding="utf-8", newline="")
        result.issues.append(path)

    result.summary_csv = write_summary_csv(drafts, report_dir / SUMMARY_CSV)
    result.summary_json = write_summary_json(drafts, report_dir / SUMMARY_JSON)

    if html:
        report_path = report_dir / REPORT_HTML
        report_path.write_text(render_report(plan, drafts, theme), encoding="utf-8", newline="")
        result.report = report_path

    logger.info(f"Wrote {len(result.issues)} draft(s) to {issues_dir}")
    return result
