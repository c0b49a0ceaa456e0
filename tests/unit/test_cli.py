"""Tests for the CLI, working offline against a temporary local cache."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from hotel_cms.cli import app
from hotel_cms.config import CACHE_DB_NAME
from hotel_cms.core.sync.local_cache import LocalCache
from hotel_cms.core.tree.navigation import find_node
from hotel_cms.models.node import ContentNode
from tests.unit.sample_data import HOTEL_DATA

runner = CliRunner()


@pytest.fixture
def data_dir(tmp_path: Path, hotel: ContentNode) -> Path:
    cache = LocalCache.open(tmp_path / CACHE_DB_NAME)
    cache.put_tree("h1", hotel)
    cache.close()
    return tmp_path


def _invoke(data_dir: Path, *args: str):
    return runner.invoke(app, [args[0], "--offline", "--data-dir", str(data_dir), *args[1:]])


def _cached_tree(data_dir: Path, doc_id: str) -> ContentNode:
    cache = LocalCache.open(data_dir / CACHE_DB_NAME)
    tree = cache.get_tree(doc_id)
    cache.close()
    assert tree is not None
    return tree


def test_documents(data_dir: Path) -> None:
    result = _invoke(data_dir, "documents")
    assert result.exit_code == 0
    assert "1 documents:" in result.output
    assert "Grand Hotel  [id=h1]" in result.output


def test_show_subtree(data_dir: Path) -> None:
    result = _invoke(data_dir, "show", "h1", "--node", "menu")
    assert result.exit_code == 0
    assert "Breakfast Menu" in result.output
    assert "Omelette" in result.output
    assert "Check-in Time" not in result.output


def test_show_unknown_document(data_dir: Path) -> None:
    result = _invoke(data_dir, "show", "nope")
    assert result.exit_code == 1
    assert "Document 'nope' not found." in result.output


def test_search(data_dir: Path) -> None:
    result = _invoke(data_dir, "search", "h1", "omelette", "--json")
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["children"][0]["id"] == "dining"

    result = _invoke(data_dir, "search", "h1", "zeppelin")
    assert "No matches for 'zeppelin'." in result.output


def test_stats(data_dir: Path) -> None:
    result = _invoke(data_dir, "stats", "h1")
    assert result.exit_code == 0
    assert "Nodes:           12" in result.output
    assert "Completion:      57%" in result.output


def test_check_lists_issues_with_paths(data_dir: Path) -> None:
    result = _invoke(data_dir, "check", "h1")
    assert result.exit_code == 0
    assert "3 issue(s)" in result.output
    assert "[critical]" in result.output
    assert "Grand Hotel > FAQ  (id=q2)" in result.output


def test_check_fix_saves_to_local_cache(data_dir: Path) -> None:
    result = _invoke(data_dir, "check", "h1", "--fix")
    assert result.exit_code == 0
    assert "saved to the local cache" in result.output
    g2 = find_node(_cached_tree(data_dir, "h1"), "g2")
    assert g2 is not None and g2.value == "TBD"


def test_export_csv_to_file(data_dir: Path, tmp_path: Path) -> None:
    out = tmp_path / "hotel.csv"
    result = _invoke(data_dir, "export", "h1", "--format", "csv", "--output", str(out))
    assert result.exit_code == 0
    assert f"Wrote {out}" in result.output
    text = out.read_text(encoding="utf-8")
    assert text.startswith("\ufeff")
    assert "Omelette" in text


def test_export_json_to_stdout(data_dir: Path) -> None:
    result = _invoke(data_dir, "export", "h1", "-f", "json")
    assert result.exit_code == 0
    assert json.loads(result.output)["name"] == "Grand Hotel"


def test_export_unknown_format(data_dir: Path) -> None:
    result = _invoke(data_dir, "export", "h1", "--format", "pdf")
    assert result.exit_code == 1
    assert "Unknown format 'pdf'" in result.output


def test_create_and_list(data_dir: Path) -> None:
    result = _invoke(data_dir, "create", "Sea View")
    assert result.exit_code == 0
    assert "Created 'Sea View' [id=hotel-" in result.output
    listing = _invoke(data_dir, "documents")
    assert "2 documents:" in listing.output
    assert "Sea View" in listing.output


def test_create_from_unknown_template(data_dir: Path) -> None:
    result = _invoke(data_dir, "create", "Sea View", "--template", "nope")
    assert result.exit_code == 1
    assert "Template 'nope' not found." in result.output


def test_import_json(data_dir: Path, tmp_path: Path) -> None:
    source = tmp_path / "tree.json"
    source.write_text(json.dumps(HOTEL_DATA), encoding="utf-8")
    result = _invoke(data_dir, "import-json", str(source), "--doc-id", "h2")
    assert result.exit_code == 0
    assert "Imported 12 nodes [id=h2]" in result.output
    assert _cached_tree(data_dir, "h2").name == "Grand Hotel"


def test_import_json_rejects_bad_input(data_dir: Path, tmp_path: Path) -> None:
    source = tmp_path / "bad.json"
    source.write_text(json.dumps({"name": "no id"}), encoding="utf-8")
    assert _invoke(data_dir, "import-json", str(source)).exit_code == 1
    assert _invoke(data_dir, "import-json", str(tmp_path / "missing.json")).exit_code == 1


def test_templates_empty(data_dir: Path) -> None:
    result = _invoke(data_dir, "templates")
    assert result.exit_code == 0
    assert "0 templates:" in result.output


def test_log_file_option(data_dir: Path, tmp_path: Path) -> None:
    log_file = tmp_path / "hotel-cms.log"
    result = runner.invoke(
        app, ["--log-file", str(log_file), "documents", "--offline", "--data-dir", str(data_dir)]
    )
    assert result.exit_code == 0
    assert log_file.exists()


def test_import_json_rejects_non_object_top_level(data_dir: Path, tmp_path: Path) -> None:
    source = tmp_path / "list.json"
    source.write_text(json.dumps([HOTEL_DATA]), encoding="utf-8")
    result = _invoke(data_dir, "import-json", str(source))
    assert result.exit_code == 1
    assert not isinstance(result.exception, AttributeError)
