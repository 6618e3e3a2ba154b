"""Tests for the click CLI."""

import json

import pytest
from click.testing import CliRunner

from conftest import FakeDriver
from ilcs import cli as cli_module
from ilcs.cli import cli, load_config


@pytest.fixture
def use_fake_driver(monkeypatch, site_pages):
    driver = FakeDriver(site_pages)
    monkeypatch.setattr(cli_module, "_make_driver", lambda config, cache: driver)
    return driver


class TestLoadConfig:
    """Tests for config layering."""

    def test_packaged_defaults(self) -> None:
        config = load_config()

        assert config["delay_ms"] == 300
        assert config["concurrency"] == 1
        assert config["base_url"].startswith("https://www.ilga.gov/")

    def test_file_then_overrides(self, tmp_path) -> None:
        path = tmp_path / "crawler.yaml"
        path.write_text("delay_ms: 1000\nconcurrency: 2\n", encoding="utf-8")

        config = load_config(path, {"delay_ms": 0, "concurrency": None})

        assert config["delay_ms"] == 0
        assert config["concurrency"] == 2


class TestChaptersCommand:
    """Tests for `ilcs chapters`."""

    def test_lists_grouped_chapters(self, use_fake_driver) -> None:
        result = CliRunner().invoke(cli, ["--no-cache", "chapters"])

        assert result.exit_code == 0, result.output
        assert "00: GOVERNMENT" in result.output
        assert "--- CHAPTER 5 GENERAL PROVISIONS" in result.output
        assert result.output.index("00: GOVERNMENT") < result.output.index("100: EDUCATION")
        assert use_fake_driver.close_calls == 1

    def test_index_failure_exits_nonzero(self, monkeypatch) -> None:
        monkeypatch.setattr(cli_module, "_make_driver", lambda config, cache: FakeDriver({}))

        result = CliRunner().invoke(cli, ["--no-cache", "chapters"])

        assert result.exit_code == 1


class TestCrawlCommand:
    """Tests for `ilcs crawl`."""

    def test_writes_output(self, use_fake_driver, tmp_path) -> None:
        out = tmp_path / "data"

        result = CliRunner().invoke(
            cli,
            ["--no-cache", "crawl", "--delay-ms", "0", "--output", str(out), "-c", "5", "-c", "105"],
        )

        assert result.exit_code == 0, result.output
        manifest = json.loads((out / "manifest.json").read_text(encoding="utf-8"))
        assert manifest["stats"]["chapters"] == 2
        assert manifest["stats"]["acts"] == 3
        assert "http://x/ch10" not in use_fake_driver.opened

    def test_reports_failures_and_unresolved_subtopics(self, use_fake_driver, site_pages, tmp_path) -> None:
        del site_pages["http://x/ch10"]
        subtopics = tmp_path / "subtopics.yaml"
        subtopics.write_text("- GENERAL PROVISIONS\n", encoding="utf-8")

        result = CliRunner().invoke(
            cli,
            [
                "--no-cache", "crawl", "--delay-ms", "0",
                "--output", str(tmp_path / "data"),
                "--subtopics", str(subtopics),
            ],
        )

        assert result.exit_code == 0, result.output
        assert "FAIL: chapter 10" in result.output
        assert "Subtopic 'SCHOOLS' not found" in result.output
