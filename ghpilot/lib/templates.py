"""
Issue and plan templates.

Templates are plain text with {{ name }} placeholders. Rendering never fails:
a placeholder with no value renders as an empty string. Completeness is
checked separately by check_placeholders() when the caller asks for it.
"""

import logging
import re
from pathlib import Path

from ghpilot.lib.errors import TemplateError

logger = logging.getLogger(__name__)

PLACEHOLDER_RE = re.compile(r'\{\{\s*([a-z_]+)\s*\}\}')

ISSUE_PLACEHOLDERS = (
    "project", "id", "title", "pitch", "owner",
    "status", "tasks", "labels", "acceptance",
)
PLAN_PLACEHOLDERS = ("project", "generated_at", "items")

# Names a template must mention when strict checking is on
REQUIRED_ISSUE_PLACEHOLDERS = ("pitch", "tasks", "acceptance")
REQUIRED_PLAN_PLACEHOLDERS = ("items",)


def _get_templates_dir() -> Path:
    """Get path to the bundled default templates."""
    return Path(__file__).parent.parent / "templates"


def load_template(path: Path | None, default_name: str) -> str:
    """Load a template from path, or the bundled default when path is None."""
    if path is None:
        path = _get_templates_dir() / default_name
    path = Path(path)
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise TemplateError(f"Cannot read template {path}: {e.strerror or e}") from None
    except UnicodeDecodeError as e:
        raise TemplateError(f"Cannot read template {path}: not UTF-8 ({e.reason} at byte {e.start})") from None


def placeholders(text: str) -> list[str]:
    """Return placeholder names in order of first appearance."""
    return list(dict.fromkeys(PLACEHOLDER_RE.findall(text)))


def render_template(text: str, values: dict[str, str]) -> str:
    """Substitute {{ name }} tokens. Unknown names become empty strings."""
    return PLACEHOLDER_RE.sub(lambda m: values.get(m.group(1), ""), text)


def check_placeholders(text: str, required: tuple[str, ...], template_name: str) -> None:
    """Fail if any required placeholder is missing from the raw template.

    Raises:
        TemplateError: listing every missing name
    """
    present = set(placeholders(text))
    missing = [name for name in required if name not in present]
    if missing:
        raise TemplateError(
            f"{template_name} template is missing placeholder(s): {', '.join(missing)}"
        )


def warn_unknown_placeholders(text: str, known: tuple[str, ...], template_name: str) -> None:
    """Log names that will always render empty."""
    unknown = [name for name in placeholders(text) if name not in known]
    if unknown:
        logger.warning(
            f"{template_name} template uses unknown placeholder(s) that render empty: "
            f"{', '.join(unknown)}"
        )
