"""
Self-contained HTML report.

Embeds the plan, a summary table filtered in the browser by substring match
over id/title/labels, and every issue body. No external assets are loaded.
"""

import html
import logging

logger = logging.getLogger(__name__)

DEFAULT_THEME = "light"

THEMES = {
    "light": {
        "bg": "#ffffff",
        "fg": "#1f2328",
        "muted": "#656d76",
        "panel": "#f6f8fa",
        "border": "#d0d7de",
        "accent": "#0969da",
    },
    "dark": {
        "bg": "#0d1117",
        "fg": "#e6edf3",
        "muted": "#8d96a0",
        "panel": "#161b22",
        "border": "#30363d",
        "accent": "#4493f8",
    },
}

PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{title}</title>
<style>
body {{ background: {bg}; color: {fg}; font-family: -apple-system, "Segoe UI", Helvetica, Arial, sans-serif; margin: 2rem; }}
h1, h2 {{ border-bottom: 1px solid {border}; padding-bottom: .3rem; }}
pre {{ background: {panel}; border: 1px solid {border}; padding: 1rem; white-space: pre-wrap; }}
table {{ border-collapse: collapse; width: 100%; }}
th, td {{ border: 1px solid {border}; padding: .4rem .6rem; text-align: left; }}
th {{ background: {panel}; }}
input {{ background: {panel}; color: {fg}; border: 1px solid {border}; padding: .4rem; width: 100%; margin-bottom: .8rem; }}
.label {{ color: {accent}; margin-right: .4rem; }}
.muted {{ color: {muted}; }}
</style>
</head>
<body>
<h1>{title}</h1>
<p class="muted">{count} issue draft(s)</p>
<h2>Summary</h2>
<input id="filter" type="search" placeholder="Filter by id, title or label">
<table id="summary">
<thead><tr><th>ID</th><th>Title</th><th>Labels</th></tr></thead>
<tbody>
{rows}
</tbody>
</table>
<h2>Plan</h2>
<pre>{plan}</pre>
<h2>Issues</h2>
{issues}
<script>
(function () {{
  var input = document.getElementById("filter");
  var rows = document.querySelectorAll("#summary tbody tr");
  input.addEventListener("input", function () {{
    var needle = input.value.toLowerCase();
    rows.forEach(function (row) {{
      var haystack = row.getAttribute("data-search");
      row.style.display = haystack.indexOf(needle) === -1 ? "none" : "";
    }});
  }});
}})();
</script>
</body>
</html>
"""


def resolve_theme(name: str | None) -> dict[str, str]:
    """Return theme colors, falling back to the default for unknown names."""
    if name is None:
        return THEMES[DEFAULT_THEME]
    if name not in THEMES:
        logger.warning(f"Unknown theme '{name}', using '{DEFAULT_THEME}'")
        return THEMES[DEFAULT_THEME]
    return THEMES[name]


def _row(draft) -> str:
    search = " ".join([draft.id, draft.title, *draft.labels]).lower()
    labels = "".join(f'<span class="label">{html.escape(label)}</span>' for label in draft.labels)
    return (
        f'<tr data-search="{html.escape(search)}">'
        f'<td><a href="#{html.escape(draft.id)}">{html.escape(draft.id)}</a></td>'
        f"<td>{html.escape(draft.title)}</td>"
        f"<td>{labels}</td></tr>"
    )


def _issue(draft) -> str:
    return (
        f'<section id="{html.escape(draft.id)}">\n'
        f"<h3>{html.escape(draft.id)}: {html.escape(draft.title)}</h3>\n"
        f"<pre>{html.escape(draft.body)}</pre>\n"
        f"</section>"
    )


def render_report(plan: str, drafts, theme: str | None = None) -> str:
    """Render the HTML report for a simulate run."""
    first_line = plan.splitlines()[0] if plan else ""
    title = first_line.lstrip("# ").strip() or "Execution Plan"
    return PAGE.format(
        title=html.escape(title),
        count=len(drafts),
        rows="\n".join(_row(draft) for draft in drafts),
        plan=html.escape(plan),
        issues="\n".join(_issue(draft) for draft in drafts),
        **resolve_theme(theme),
    )
