# File: tests/test_cli.py
"""CLI tests (`backlink_scout.cli`) with click.testing.CliRunner.

`run_crawl` is patched so no network or browser is involved. Diagnostics
go to stderr and the JSON result to stdout; the JSON line is picked out of
the captured output.
"""
import asyncio
import importlib
import json

import pytest
from click.testing import CliRunner

from backlink_scout.aggregator import aggregate_results
from backlink_scout.cli import cli
from backlink_scout.crawler.models import InternalLinkRecord, LinkStatus
from backlink_scout.engine import CrawlResult
from backlink_scout.errors import InvalidInputError
from backlink_scout.logger import init_logging

# the package re-exports the click group as `cli`, so fetch the module itself
cli_module = importlib.import_module("backlink_scout.cli")

TOKEN = "abcd1234567"


def json_line(output: str) -> dict:
    line = next(ln for ln in output.splitlines() if ln.startswith("{"))
    return json.loads(line)


@pytest.fixture(autouse=True)
def restore_logging():
    """The CLI binds the log handler to CliRunner's stderr; rebind afterwards."""
    yield
    init_logging()


@pytest.fixture()
def calls(monkeypatch):
    """Patch run_crawl with a fake returning a verified result."""
    seen = []

    async def fake_run(cfg, url, token, on_progress=None):
        seen.append((url, token))
        on_progress("verification", "success")
        report = aggregate_results(
            "https://example.com",
            ["https://github.com/acme"],
            [InternalLinkRecord("https://example.com/a", LinkStatus.OK, 200)],
        )
        return CrawlResult(success=True, is_verified=True, url="https://example.com", report=report)

    monkeypatch.setattr(cli_module, "run_crawl", fake_run)
    return seen


def test_version_option():
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "BacklinkScout" in result.output


def test_show_config(tmp_path, monkeypatch):
    cfg_file = tmp_path / "settings.json"
    cfg_file.write_text(json.dumps({"max_backlinks": 7, "verify_tag": "owner-check"}), encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "config"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["max_backlinks"] == 7
    assert data["verify_tag"] == "owner-check"


def test_bad_config_exits(tmp_path):
    cfg_file = tmp_path / "broken.yaml"
    cfg_file.write_text("max_backlinks: -5\n", encoding="utf-8")

    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "config"])
    assert result.exit_code == 1
    assert "Failed to load configuration" in result.output


def test_verify_stdout(tmp_path, monkeypatch, calls):
    monkeypatch.chdir(tmp_path)
    runner = CliRunner()
    result = runner.invoke(cli, ["verify", "example.com", TOKEN])

    assert result.exit_code == 0
    assert calls == [("example.com", TOKEN)]
    data = json_line(result.output)
    assert data["success"] is True
    assert data["isVerified"] is True
    assert data["stats"] == {"externalLinks": 1, "internalLinks": 1, "brokenLinks": 0}
    assert data["report"]["external"][0]["type"] == "code repo"


def test_verify_json_file(tmp_path, monkeypatch, calls):
    monkeypatch.chdir(tmp_path)
    out = tmp_path / "reports" / "example.json"

    runner = CliRunner()
    result = runner.invoke(cli, ["verify", "example.com", TOKEN, "--json", str(out)])

    assert result.exit_code == 0
    assert out.exists()
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["url"] == "https://example.com"
    assert data["report"]["internal"] == [{"url": "https://example.com/a", "status": "OK", "code": 200}]


def test_verify_failure_exits_nonzero(tmp_path, monkeypatch):
    async def failing(cfg, url, token, on_progress=None):
        return CrawlResult.failure(InvalidInputError("Invalid verification token"))

    monkeypatch.setattr(cli_module, "run_crawl", failing)
    monkeypatch.chdir(tmp_path)

    runner = CliRunner()
    result = runner.invoke(cli, ["verify", "example.com", "short"])

    assert result.exit_code == 1
    assert "Invalid verification token" in result.output
    assert json_line(result.output)["errorType"] == "InvalidInputError"


def test_verify_timeout(tmp_path, monkeypatch):
    async def slow(cfg, url, token, on_progress=None):
        await asyncio.sleep(2)

    monkeypatch.setattr(cli_module, "run_crawl", slow)
    monkeypatch.chdir(tmp_path)

    runner = CliRunner()
    result = runner.invoke(cli, ["verify", "example.com", TOKEN, "--timeout", "0.2"])

    assert result.exit_code != 0
    assert "did not finish" in result.output
