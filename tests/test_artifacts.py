"""Tests for ghpilot.lib.artifacts module."""

import json
from pathlib import Path

import pytest

from ghpilot.lib.artifacts import (
    check_clean_target,
    clean_output_dir,
    draft_filename,
    render_draft,
    render_summary_csv,
    render_summary_json,
    slugify,
    write_outputs,
)
from ghpilot.lib.backlog import Backlog, BacklogItem
from ghpilot.lib.drafts import IssueDraft, build_issue_drafts, build_plan
from ghpilot.lib.errors import UnsafeCleanTarget
from ghpilot.lib.templates import load_template


def draft(item_id="gp-001", title="Bootstrap repo", body="Body", labels=("status:backlog",)):
    return IssueDraft(id=item_id, title=title, body=body, labels=tuple(labels))


class TestSlugify:
    """Tests for slugify()."""

    @pytest.mark.parametrize("title,expected", [
        ("Bootstrap repo", "bootstrap-repo"),
        ("  Add CI / CD!!  ", "add-ci-cd"),
        ("--Edge--Case--", "edge-case"),
        ("Ünïcode Títle", "n-code-t-tle"),
        ("!!!", "issue"),
        ("", "issue"),
    ])
    def test_slugs(self, title, expected):
        assert slugify(title) == expected


class TestDraftFilename:
    """Tests for draft_filename()."""

    def test_pads_index_and_embeds_id(self):
        assert draft_filename(1, draft()) == "01-gp-001-bootstrap-repo.md"

    def test_index_past_99(self):
        assert draft_filename(100, draft()) == "100-gp-001-bootstrap-repo.md"

    def test_empty_slug_falls_back(self):
        assert draft_filename(3, draft(title="???")) == "03-gp-001-issue.md"


class TestRenderDraft:
    """Tests for render_draft()."""

    def test_layout(self):
        text = render_draft(draft(labels=("status:mvp", "docs")))
        assert text == "# Bootstrap repo\n\nBody\n\nLabels: status:mvp, docs\n"


class TestSummaries:
    """Tests for the CSV and JSON summaries."""

    def test_csv_header_and_rows(self):
        text = render_summary_csv([draft(labels=("status:backlog", "docs"))])
        assert text == "id,title,labels\ngp-001,Bootstrap repo,status:backlog;docs\n"

    def test_csv_quotes_special_fields(self):
        text = render_summary_csv([draft(title='Say "hi", then\nleave')])
        assert text == 'id,title,labels\ngp-001,"Say ""hi"", then\nleave",status:backlog\n'

    def test_csv_with_no_drafts_is_header_only(self):
        assert render_summary_csv([]) == "id,title,labels\n"

    def test_json_entries(self):
        data = json.loads(render_summary_json([draft(labels=("status:backlog", "docs"))]))
        assert data == [{"id": "gp-001", "title": "Bootstrap repo", "labels": "status:backlog;docs"}]

    def test_json_is_pretty_printed(self):
        text = render_summary_json([draft()])
        assert text.startswith("[\n  {\n")
        assert text.endswith("]\n")


class TestCleanOutputDir:
    """clean refuses obviously dangerous targets."""

    @pytest.mark.parametrize("target", ["", ".", "/", "./", "  "])
    def test_refuses_unsafe_targets(self, target):
        with pytest.raises(UnsafeCleanTarget):
            clean_output_dir(target)

    def test_refuses_working_directory(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(UnsafeCleanTarget):
            check_clean_target(str(tmp_path))

    def test_refuses_home_directory(self):
        with pytest.raises(UnsafeCleanTarget):
            check_clean_target("~")

    def test_removes_existing_tree(self, tmp_path):
        target = tmp_path / "out"
        (target / "issues").mkdir(parents=True)
        (target / "issues" / "old.md").write_text("stale")
        clean_output_dir(target)
        assert not target.exists()

    def test_keeps_named_entries(self, tmp_path):
        target = tmp_path / "out"
        (target / "issues").mkdir(parents=True)
        (target / "issues" / "old.md").write_text("stale")
        (target / "plan.md").write_text("old plan")
        (target / "publish-state.json").write_text("{}")
        clean_output_dir(target, keep={"publish-state.json"})
        assert sorted(p.name for p in target.iterdir()) == ["publish-state.json"]
        assert (target / "publish-state.json").read_text() == "{}"

    def test_missing_target_is_noop(self, tmp_path):
        clean_output_dir(tmp_path / "never-created")


class TestWriteOutputs:
    """Tests for write_outputs()."""

    @pytest.fixture
    def backlog(self):
        return Backlog(project="Pilot", items=(
            BacklogItem(id="gp-001", title="Bootstrap repo", pitch="Basics"),
            BacklogItem(id="gp-002", title="Add CI", pitch="Checks", labels=("ci",)),
            BacklogItem(id="gp-003", title="Write docs", pitch="Docs", status="mvp"),
        ))

    def render(self, backlog):
        drafts = build_issue_drafts(backlog, load_template(None, "issue.md"))
        plan = build_plan(backlog, load_template(None, "plan.md"), generated_at="2024-01-01T00:00:00Z")
        return plan, drafts

    def test_every_output_has_one_entry_per_item(self, tmp_path, backlog):
        plan, drafts = self.render(backlog)
        result = write_outputs(tmp_path / "out", plan, drafts)

        n = len(backlog.items)
        assert plan.count("\n## ") == n
        assert len(list((tmp_path / "out" / "issues").glob("*.md"))) == n
        csv_lines = result.summary_csv.read_text().splitlines()
        assert len(csv_lines) == n + 1
        assert len(json.loads(result.summary_json.read_text())) == n

    def test_layout(self, tmp_path, backlog):
        plan, drafts = self.render(backlog)
        result = write_outputs(tmp_path / "out", plan, drafts)

        out = tmp_path / "out"
        assert result.plan == out / "plan.md"
        assert [p.name for p in result.issues] == [
            "01-gp-001-bootstrap-repo.md",
            "02-gp-002-add-ci.md",
            "03-gp-003-write-docs.md",
        ]
        assert result.summary_csv == out / "summary.csv"
        assert result.summary_json == out / "summary.json"
        assert result.report is None
        issue = (out / "issues" / "02-gp-002-add-ci.md").read_text()
        assert issue.endswith("Labels: status:backlog, ci\n")

    def test_separate_report_dir_and_html(self, tmp_path, backlog):
        plan, drafts = self.render(backlog)
        result = write_outputs(tmp_path / "out", plan, drafts, report_dir=tmp_path / "report", html=True)
        assert result.summary_csv == tmp_path / "report" / "summary.csv"
        assert result.report == tmp_path / "report" / "index.html"
        assert "gp-002" in result.report.read_text()

    def test_two_runs_are_byte_identical(self, tmp_path, backlog):
        plan, drafts = self.render(backlog)
        write_outputs(tmp_path / "one", plan, drafts)
        plan, drafts = self.render(backlog)
        write_outputs(tmp_path / "two", plan, drafts)

        for name in ["plan.md", "summary.csv", "summary.json", "issues/01-gp-001-bootstrap-repo.md"]:
            assert (tmp_path / "one" / name).read_bytes() == (tmp_path / "two" / name).read_bytes()

    def test_writes_lf_line_endings(self, tmp_path, backlog):
        plan, drafts = self.render(backlog)
        result = write_outputs(tmp_path / "out", plan, drafts)
        assert b"\r\n" not in result.plan.read_bytes()
        assert b"\r\n" not in result.summary_csv.read_bytes()


def test_write_result_paths_are_paths(tmp_path):
    result = write_outputs(tmp_path, "# Plan\n", [draft()])
    assert isinstance(result.plan, Path)
