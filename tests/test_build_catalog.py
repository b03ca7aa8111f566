"""Tests for the catalog build CLI."""

import json

import pytest

from Ingress.build_catalog import filter_from_args, build_parser, main


@pytest.fixture
def docs_dir(tmp_path, sample_texts):
    for ref, text in sample_texts.items():
        (tmp_path / ref).write_text(text, encoding="utf-8")
    return tmp_path


def test_filter_from_args():
    args = build_parser().parse_args(["--tag", "react", "--tag", "vite", "--date-from", "2024-01-01"])
    assert filter_from_args(args) == {"tags": ["react", "vite"], "dateFrom": "2024-01-01"}


def test_report_and_stats(docs_dir, capsys):
    assert main(["--input", str(docs_dir)]) == 0
    out = capsys.readouterr().out
    assert "Ingested: 5" in out
    assert "Rejected: 0" in out
    assert "Documents: 5" in out


def test_rejections_listed_with_every_problem(docs_dir, capsys):
    (docs_dir / "broken.md").write_text("---\nname: Broken\n---\n", encoding="utf-8")
    assert main(["--input", str(docs_dir)]) == 1
    out = capsys.readouterr().out
    assert "✗ broken.md" in out
    assert "description: required field is missing" in out
    assert "lastUpdated: required field is missing" in out


def test_search_json(docs_dir, capsys):
    assert main(["--input", str(docs_dir), "--tag", "python", "--sort", "name", "--json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert [item["id"] for item in payload["items"]] == ["django", "fastapi"]
    assert payload["total"] == 2
    assert payload["rejected"] == []


def test_search_text_output(docs_dir, capsys):
    assert main(["--input", str(docs_dir), "--text", "vite"]) == 0
    out = capsys.readouterr().out
    assert "1 match(es)" in out
    assert "React + TypeScript (id: react-ts)" in out


def test_invalid_filter(docs_dir, capsys):
    assert main(["--input", str(docs_dir), "--limit", "-1", "--json"]) == 1
    payload = json.loads(capsys.readouterr().out)
    assert "limit" in payload["error"]["problems"][0]


def test_missing_directory(tmp_path, capsys):
    assert main(["--input", str(tmp_path / "missing")]) == 1
    assert "Directory not found" in capsys.readouterr().out
