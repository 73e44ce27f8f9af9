"""Tests for the scoring-core command line."""

from __future__ import annotations

import json

import pytest

from scoring_core.__main__ import main

EVENTS_JSON = """\
[
  {"event_type": "tool_complete", "timestamp": "2024-06-01T12:00:00Z", "session_id": "s1"},
  {"event_type": "tool_complete", "timestamp": "2024-06-01T12:00:00Z", "session_id": "s1"},
  {"event_type": "email_capture", "timestamp": "2024-06-01T12:00:00Z", "session_id": "s1"},
  {"event_type": "email_capture"}
]
"""

TOOL_YAML = """\
id: {tool_id}
title: Quick check
questions:
  - id: q1
    type: scale
    text: How are you?
    min: 1
    max: 5
scoring:
  type: simple
  result_tiers:
    - {{min: 0, max: 49, label: Low}}
    - {{min: 50, max: {top}, label: High}}
"""


def _write_tool(path, tool_id="quick", top=100):
    path.write_text(TOOL_YAML.format(tool_id=tool_id, top=top), encoding="utf-8")


class TestScore:
    def test_json_output(self, tmp_path, capsys):
        events = tmp_path / "events.json"
        events.write_text(EVENTS_JSON, encoding="utf-8")
        main(["score", "--events", str(events), "--now", "2024-06-01T12:00:00Z", "--json"])
        captured = capsys.readouterr()
        data = json.loads(captured.out)
        assert data["score"]["total"] == 140
        assert data["score"]["tier"] == "soft-member"
        assert data["next_tier"] == "hot-lead"
        assert data["points_to_next_tier"] == 11
        assert data["breakdown"]["tool_complete"]["count"] == 2
        assert "skipped 1 malformed" in captured.err

    def test_table_output_from_yaml_mapping(self, tmp_path, capsys):
        events = tmp_path / "events.yaml"
        events.write_text(
            "events:\n"
            "  - {event_type: page_visit, timestamp: '2024-06-01T12:00:00Z', session_id: s1}\n",
            encoding="utf-8",
        )
        main(["score", "--events", str(events), "--now", "2024-06-01T12:00:00Z"])
        out = capsys.readouterr().out
        assert "Lead Score Report" in out
        assert "Total:        11  (browser)" in out
        assert "page_visit" in out

    def test_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["score", "--events", str(tmp_path / "missing.json")])
        assert exc_info.value.code == 1
        assert "does not exist" in capsys.readouterr().err

    def test_bad_now(self, tmp_path):
        events = tmp_path / "events.json"
        events.write_text("[]", encoding="utf-8")
        with pytest.raises(SystemExit) as exc_info:
            main(["score", "--events", str(events), "--now", "yesterday-ish"])
        assert exc_info.value.code == 1

    def test_wrong_root(self, tmp_path, capsys):
        events = tmp_path / "events.yaml"
        events.write_text("just a string\n", encoding="utf-8")
        with pytest.raises(SystemExit):
            main(["score", "--events", str(events)])
        assert "cannot read events" in capsys.readouterr().err


class TestCheckTools:
    def test_table(self, tmp_path, capsys):
        _write_tool(tmp_path / "quick.yaml")
        _write_tool(tmp_path / "partial.yaml", tool_id="partial", top=90)
        main(["check-tools", "--tool-dir", str(tmp_path)])
        out = capsys.readouterr().out
        assert "Assessment Tool Check" in out
        assert "partial: result tiers do not span 0-100" in out
        assert "Loaded: 2 tools | with warnings: 1" in out

    def test_json(self, tmp_path, capsys):
        _write_tool(tmp_path / "quick.yaml")
        main(["check-tools", "--tool-dir", str(tmp_path), "--json"])
        data = json.loads(capsys.readouterr().out)
        tool = data["tools"][0]
        assert tool["tool_id"] == "quick"
        assert tool["tier_coverage"] == "full"
        assert tool["required_count"] == 1
        assert tool["warnings"] == []

    def test_duplicates_and_broken_files_skipped(self, tmp_path, capsys):
        _write_tool(tmp_path / "a.yaml")
        _write_tool(tmp_path / "b.yaml")
        (tmp_path / "c.yaml").write_text("id: [\n", encoding="utf-8")
        main(["check-tools", "--tool-dir", str(tmp_path), "--json"])
        captured = capsys.readouterr()
        assert len(json.loads(captured.out)["tools"]) == 1
        assert "duplicate tool id" in captured.err
        assert "skipping c.yaml" in captured.err

    def test_empty_directory(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["check-tools", "--tool-dir", str(tmp_path)])
        assert exc_info.value.code == 1
        assert "No tools loaded." in capsys.readouterr().err


def test_no_command_prints_help(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main([])
    assert exc_info.value.code == 1
    assert "scoring-core" in capsys.readouterr().out
