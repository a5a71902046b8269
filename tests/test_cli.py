import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from aitoonic.cli import main


@pytest.fixture
def runner(data_dir, monkeypatch):
    monkeypatch.chdir(data_dir)
    monkeypatch.setattr("aitoonic.cli.setup_logging", lambda level: None)
    return CliRunner()


def test_list_sorted_and_filtered(runner):
    result = runner.invoke(main, ["list", "tools", "--search", "chat"])
    assert result.exit_code == 0, result.output
    names = [line.split("\t")[1] for line in result.output.strip().splitlines()]
    assert names == ["Chat", "Chatbot", "Chatter", "Jasper Writer"]


def test_list_descending(runner):
    result = runner.invoke(main, ["list", "categories", "--desc"])
    names = [line.split("\t")[1] for line in result.output.strip().splitlines()]
    assert names == ["Writing", "Sales", "Image Generation"]


def test_import_creates_and_updates(runner, data_dir):
    payload = [
        {"name": "Video Agent", "description": "Edits clips"},
        {"id": "a-sales", "name": "Sales Bot", "description": "Updated"},
    ]
    source = data_dir / "agents-import.json"
    source.write_text(json.dumps(payload))

    result = runner.invoke(main, ["import", "agents", str(source)])
    assert result.exit_code == 0, result.output
    assert "Saved 2 of 2 agents" in result.output

    stored = json.loads((data_dir / "agents.json").read_text())["items"]
    assert [a["name"] for a in stored] == ["Sales Bot", "Support Agent", "Video Agent"]
    assert stored[0]["description"] == "Updated"
    assert stored[2]["status"] == "active"


def test_delete_missing_row_fails(runner):
    result = runner.invoke(main, ["delete", "tools", "nope"])
    assert result.exit_code != 0
    assert "No tools row" in result.output


def test_search(runner):
    result = runner.invoke(main, ["search", "sales"])
    assert result.exit_code == 0, result.output
    lines = result.output.strip().splitlines()
    assert lines[0] == "category\tSales\t/category/sales"
    assert lines[1] == "agent\tSales Bot\t/ai-agent/sales-bot"
    assert lines[2] == "tool\tSales Assistant\t/ai/sales-assistant"


def test_search_without_hits(runner):
    result = runner.invoke(main, ["search", "zzz"])
    assert result.output.strip() == "No results"


def test_import_rejects_invalid_rows(runner, data_dir):
    source = data_dir / "agents-import.json"
    source.write_text(json.dumps([{"name": "Mega Agent", "pricing_type": "enterprise"}, "Sales Bot"]))

    result = runner.invoke(main, ["import", "agents", str(source)])
    assert result.exit_code == 0, result.output
    assert "Saved 0 of 2 agents" in result.output

    stored = json.loads((data_dir / "agents.json").read_text())["items"]
    assert [a["id"] for a in stored] == ["a-sales", "a-support"]


def test_import_continues_past_write_failures(runner, data_dir, monkeypatch):
    source = data_dir / "categories-import.json"
    source.write_text(json.dumps([{"name": "Video"}, {"name": "Audio"}]))

    def refuse(self, *args, **kwargs):
        raise PermissionError(f"read-only: {self}")

    monkeypatch.setattr(Path, "write_text", refuse)
    result = runner.invoke(main, ["import", "categories", str(source)])
    assert result.exit_code == 0, result.output
    assert "Saved 0 of 2 categories" in result.output
