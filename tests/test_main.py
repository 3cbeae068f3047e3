"""Command line parsing and the headless entry point."""

from __future__ import annotations

import argparse
import json

import pytest

from conftest import FakePlatform
from devdiag import main as cli
from devdiag.utils import Config


def test_page_to_url(tmp_path) -> None:
    page = tmp_path / "index.html"

    assert cli.page_to_url("http://localhost:5500/") == "http://localhost:5500/"
    assert cli.page_to_url(str(page)) == page.resolve().as_uri()


def test_parse_ports() -> None:
    assert cli.parse_ports("5500,3000, 8080") == [5500, 3000, 8080]
    with pytest.raises(argparse.ArgumentTypeError):
        cli.parse_ports("5500,abc")


def test_load_config_applies_overrides(tmp_path) -> None:
    args = cli.build_parser().parse_args([
        "http://localhost:4200/", "--ports", "4200,4200", "--config", str(tmp_path / "none.json"),
    ])

    config = cli.load_config(args)

    assert config.page_url == "http://localhost:4200/"
    assert config.local_ports == [4200]


def test_invalid_port_override_exits_2(tmp_path) -> None:
    assert cli.main(["--ports", "99999", "--config", str(tmp_path / "none.json"), "--headless"]) == 2


@pytest.fixture
def fake_platform(monkeypatch):
    """Swap the desktop platform for a scripted one, keyed by page url."""
    platforms = {}

    def factory(page_url, *args, **kwargs):
        platform = platforms.get(page_url) or FakePlatform(page_url=page_url)
        platforms[page_url] = platform
        return platform

    monkeypatch.setattr(cli, "DesktopPlatform", factory)
    return platforms


def test_headless_exit_status(fake_platform, capsys) -> None:
    fake_platform["file:///site/index.html"] = FakePlatform(page_url="file:///site/index.html")
    fake_platform["http://localhost:3000/"] = FakePlatform(
        page_url="http://localhost:3000/", up_ports=(3000,)
    )

    assert cli.run_headless(Config(page_url="file:///site/index.html")) == 1
    assert cli.run_headless(Config(page_url="http://localhost:3000/")) == 0
    assert "Local dev server detected" in capsys.readouterr().out


def test_headless_writes_json_and_startup_error(fake_platform, tmp_path, capsys) -> None:
    path = tmp_path / "report.json"

    cli.run_headless(Config(page_url="http://localhost:5500/"), path, startup_error="no display")

    assert json.loads(path.read_text(encoding='utf-8'))['page_url'] == "http://localhost:5500/"
    assert "Diagnostics panel unavailable" in capsys.readouterr().out


def test_headless_writes_text_report(fake_platform, tmp_path) -> None:
    args = cli.build_parser().parse_args(["--text", str(tmp_path / "report.txt")])
    assert args.text_path == tmp_path / "report.txt"

    cli.run_headless(Config(page_url="http://localhost:5500/"), text_path=args.text_path)

    text = args.text_path.read_text(encoding='utf-8')
    assert "DEV CONNECTION DIAGNOSTICS REPORT" in text
    assert "Page:       http://localhost:5500/" in text
