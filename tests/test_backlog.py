"""Tests for ghpilot.lib.backlog module."""

import pytest

from ghpilot.lib.backlog import (
    Backlog,
    BacklogItem,
    STATUSES,
    load_backlog,
    parse_backlog,
    sort_backlog,
)
from ghpilot.lib.errors import BacklogError, DuplicateIdError


def make_doc(*items, project="Pilot"):
    return {"project": project, "items": list(items)}


def make_item(item_id, **extra):
    item = {"id": item_id, "title": f"Title {item_id}", "pitch": f"Pitch {item_id}"}
    item.update(extra)
    return item


class TestParseBacklog:
    """Tests for parse_backlog()."""

    def test_builds_items_in_input_order(self):
        backlog = parse_backlog(make_doc(make_item("b-002"), make_item("a-001")))
        assert backlog.project == "Pilot"
        assert [item.id for item in backlog.items] == ["b-002", "a-001"]

    def test_applies_defaults(self):
        backlog = parse_backlog(make_doc(make_item("gp-001")))
        item = backlog.items[0]
        assert item.status == "backlog"
        assert item.owner is None
        assert item.labels == ()
        assert item.tasks == ()
        assert item.acceptance == ()
        assert item.risks == ()

    def test_keeps_optional_fields(self):
        backlog = parse_backlog(make_doc(make_item(
            "gp-001",
            owner="alice",
            status="mvp",
            labels=["docs"],
            tasks=["Write it", "Ship it"],
            acceptance=["Works"],
            risks=["Too slow"],
        )))
        item = backlog.items[0]
        assert item.owner == "alice"
        assert item.status == "mvp"
        assert item.tasks == ("Write it", "Ship it")
        assert item.acceptance == ("Works",)
        assert item.risks == ("Too slow",)

    def test_dedupes_labels_keeping_first(self):
        backlog = parse_backlog(make_doc(make_item("gp-001", labels=["b", "a", "b", "c", "a"])))
        assert backlog.items[0].labels == ("b", "a", "c")

    def test_keeps_generated_by(self):
        doc = make_doc(make_item("gp-001"))
        doc["generated_by"] = "planner"
        assert parse_backlog(doc).generated_by == "planner"

    def test_items_are_immutable(self):
        backlog = parse_backlog(make_doc(make_item("gp-001")))
        with pytest.raises(AttributeError):
            backlog.items[0].title = "changed"


class TestSchemaErrors:
    """Structural problems are reported together."""

    def test_reports_every_problem_in_one_error(self):
        doc = make_doc(
            {"id": "ok-1", "pitch": "no title"},
            {"id": "-bad", "title": "Bad id", "pitch": "x"},
            make_item("ok-3", status="done"),
        )
        with pytest.raises(BacklogError) as exc_info:
            parse_backlog(doc)
        message = str(exc_info.value)
        assert "3 problem(s)" in message
        assert "'title' is a required property" in message
        assert "-bad" in message
        assert "'done' is not one of" in message
        assert not isinstance(exc_info.value, DuplicateIdError)

    def test_rejects_wrong_types(self):
        with pytest.raises(BacklogError, match="items.0.labels"):
            parse_backlog(make_doc(make_item("gp-001", labels="docs")))

    def test_rejects_missing_project(self):
        with pytest.raises(BacklogError, match="'project' is a required property"):
            parse_backlog({"items": [make_item("gp-001")]})

    def test_rejects_empty_items(self):
        with pytest.raises(BacklogError):
            parse_backlog(make_doc())

    def test_rejects_non_mapping_document(self):
        with pytest.raises(BacklogError, match="is not of type 'object'"):
            parse_backlog(None)

    @pytest.mark.parametrize("item_id", ["a", "A1", "gp-001", "x.y_z-1", "9lives"])
    def test_accepts_filename_safe_ids(self, item_id):
        backlog = parse_backlog(make_doc(make_item(item_id)))
        assert backlog.items[0].id == item_id

    @pytest.mark.parametrize("item_id", ["", "-lead", ".hidden", "has space", "slash/id", "gp-001\n", "gp-001\nx"])
    def test_rejects_unsafe_ids(self, item_id):
        with pytest.raises(BacklogError, match="items.0.id"):
            parse_backlog(make_doc(make_item(item_id)))

    def test_trailing_newline_id_reported_once(self):
        with pytest.raises(BacklogError) as exc_info:
            parse_backlog(make_doc(make_item("gp-001\n"), make_item("ok", labels=["x;y"])))
        message = str(exc_info.value)
        assert "2 problem(s)" in message
        assert "'gp-001\\n' is not a filename-safe id" in message
        assert "items.1.labels.0" in message

    @pytest.mark.parametrize("label", ["area;ui", " spaced", "spaced ", "trailing\n", ""])
    def test_rejects_labels_that_do_not_survive_the_summary(self, label):
        with pytest.raises(BacklogError, match="items.0.labels.0"):
            parse_backlog(make_doc(make_item("gp-001", labels=[label])))

    @pytest.mark.parametrize("label", ["docs", "area: ui", "good first issue", "x"])
    def test_accepts_labels(self, label):
        assert parse_backlog(make_doc(make_item("gp-001", labels=[label]))).items[0].labels == (label,)


class TestDuplicateIds:
    """Duplicate ids are a separate, batched error."""

    def test_names_every_duplicate_sorted(self):
        doc = make_doc(
            make_item("zz"), make_item("aa"), make_item("zz"),
            make_item("mm"), make_item("aa"), make_item("aa"),
        )
        with pytest.raises(DuplicateIdError) as exc_info:
            parse_backlog(doc)
        assert exc_info.value.duplicates == ["aa", "zz"]
        assert str(exc_info.value) == "Duplicate item ids: aa, zz"

    def test_structure_errors_win_over_duplicates(self):
        doc = make_doc(make_item("aa"), make_item("aa"), {"id": "bb"})
        with pytest.raises(BacklogError) as exc_info:
            parse_backlog(doc)
        assert not isinstance(exc_info.value, DuplicateIdError)


class TestSortBacklog:
    """Tests for sort_backlog()."""

    def test_sorts_lexicographically(self):
        backlog = parse_backlog(make_doc(make_item("b-002"), make_item("a-001")))
        sorted_backlog = sort_backlog(backlog)
        assert [item.id for item in sorted_backlog.items] == ["a-001", "b-002"]

    def test_does_not_modify_original(self):
        backlog = parse_backlog(make_doc(make_item("b"), make_item("a")))
        sort_backlog(backlog)
        assert [item.id for item in backlog.items] == ["b", "a"]

    def test_is_stable_for_equal_keys(self):
        first = BacklogItem(id="same", title="first", pitch="p")
        second = BacklogItem(id="same", title="second", pitch="p")
        backlog = Backlog(project="P", items=(BacklogItem(id="z", title="z", pitch="p"), first, second))
        result = sort_backlog(backlog)
        assert [item.title for item in result.items] == ["first", "second", "z"]


class TestLoadBacklog:
    """Tests for load_backlog()."""

    def test_loads_yaml_file(self, tmp_path):
        path = tmp_path / "backlog.yml"
        path.write_text(
            "project: Pilot\n"
            "items:\n"
            "  - id: gp-001\n"
            "    title: Bootstrap repo\n"
            "    pitch: Get the basics in place\n"
            "    labels: [infra]\n"
        )
        backlog = load_backlog(path)
        assert backlog.items[0].title == "Bootstrap repo"
        assert backlog.items[0].labels == ("infra",)

    def test_missing_file(self, tmp_path):
        with pytest.raises(BacklogError, match="Cannot read backlog"):
            load_backlog(tmp_path / "missing.yml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "backlog.yml"
        path.write_text("project: [unclosed\n")
        with pytest.raises(BacklogError, match="Invalid YAML"):
            load_backlog(path)

    def test_not_utf8(self, tmp_path):
        path = tmp_path / "backlog.yml"
        path.write_bytes(b"project: Pilot\nitems:\n  - id: \xff\xfe\n")
        with pytest.raises(BacklogError, match="Cannot read backlog .*not UTF-8"):
            load_backlog(path)


def test_status_values():
    assert STATUSES == ("backlog", "scaffolded", "mvp", "hardened", "shipped")
