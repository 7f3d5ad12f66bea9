"""Tests for the format probe."""

import json
from pathlib import Path

from nutrition_ingest.services.probe import (
    FormatProbe,
    describe_schema,
    find_object_end,
)


def test_find_object_end_ignores_braces_in_strings() -> None:
    text = '{"a": "}{", "b": "\\"}"} trailing'
    end = find_object_end(text, 0)
    assert end is not None
    assert json.loads(text[:end]) == {"a": "}{", "b": '"}'}


def test_find_object_end_unclosed() -> None:
    assert find_object_end('{"a": {"b": 1}', 0) is None


def test_describe_schema_samples_and_truncates() -> None:
    schema = describe_schema({"items": [1, 2, 3, 4], "deep": {"x": {"y": 1}}}, 2)
    items = schema["properties"]["items"]  # type: ignore[index]
    assert items["length"] == 4
    assert len(items["sampleItems"]) == 3
    assert schema["properties"]["deep"]["properties"]["x"] == {  # type: ignore[index]
        "type": "object",
        "truncated": True,
    }


def test_probe_wrapped_array(tmp_path: Path) -> None:
    path = tmp_path / "foundation.json"
    path.write_text(
        json.dumps({"FoundationFoods": [{"description": "a", "fdcId": 1}]}),
        encoding="utf-8",
    )
    report = FormatProbe().probe_file(path)
    assert report.status == "ok"
    assert report.container == "wrapped-array"
    assert report.root_key == "FoundationFoods"
    assert report.array_length == 1
    assert report.record_schema is not None
    assert set(report.record_schema["properties"]) == {  # type: ignore[arg-type]
        "description",
        "fdcId",
    }


def test_probe_large_wrapped_array_reports_partial(tmp_path: Path) -> None:
    path = tmp_path / "branded.json"
    foods = [{"description": f"food {i}", "padding": "x" * 50} for i in range(50)]
    path.write_text(json.dumps({"BrandedFoods": foods}), encoding="utf-8")
    report = FormatProbe(prefix_bytes=200).probe_file(path)
    assert report.status == "partial"
    assert report.root_key == "BrandedFoods"
    assert report.record_schema is not None


def test_probe_bare_array(tmp_path: Path) -> None:
    path = tmp_path / "bare.json"
    path.write_text(json.dumps([{"a": 1}, {"a": 2}]), encoding="utf-8")
    report = FormatProbe().probe_file(path)
    assert report.container == "array"


def test_probe_problems_are_reported(tmp_path: Path) -> None:
    probe = FormatProbe(prefix_bytes=10)
    big = tmp_path / "big.json"
    big.write_text(json.dumps([{"description": "x" * 100}]), encoding="utf-8")
    empty = tmp_path / "empty.json"
    empty.write_text("", encoding="utf-8")
    assert probe.probe_file(big).status == "unanalyzable"
    assert probe.probe_file(empty).status == "unanalyzable"
    assert probe.probe_file(tmp_path / "absent.json").status == "missing"


def test_probe_files_writes_report(tmp_path: Path) -> None:
    path = tmp_path / "bare.json"
    path.write_text(json.dumps([{"a": 1}]), encoding="utf-8")
    output = tmp_path / "reports" / "schema.json"
    reports = FormatProbe().probe_files([path, tmp_path / "absent.json"], output)
    written = json.loads(output.read_text(encoding="utf-8"))
    assert set(written) == set(reports)
    assert written[str(path)]["container"] == "array"


def test_unreadable_file_is_reported(tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "locked.json"
    path.write_text("[]", encoding="utf-8")

    def deny(self, *args, **kwargs):  # type: ignore[no-untyped-def]
        raise PermissionError("permission denied")

    monkeypatch.setattr(Path, "open", deny)
    report = FormatProbe().probe_file(path)
    assert report.status == "unanalyzable"
    assert report.reason == "permission denied"
