"""Tests for argument parsing, settings overrides and exit codes."""

from __future__ import annotations

import argparse

import pytest

from doppelganger import cli
from doppelganger.exceptions import DecoyServerError
from doppelganger.settings import CloneSettings, ServeSettings, get_settings, reset_settings
from doppelganger.startup_checks import run_serve_checks


@pytest.fixture(autouse=True)
def _clean_settings(monkeypatch):
    for name in (
        "DOPPELGANGER_CONFIG",
        "DOPPELGANGER_PORT",
        "DOPPELGANGER_STDIO",
        "DOPPELGANGER_HTTP",
        "DOPPELGANGER_PLACEHOLDER",
        "DOPPELGANGER_CLONE_FORMAT",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


def test_no_command_defaults_to_serve():
    args = cli._parse_args([])
    assert args.command == "serve"
    settings = cli.serve_settings_from_args(args, ServeSettings.from_env())
    assert settings.http is True
    assert settings.stdio is False
    assert settings.port == 3000
    assert settings.source == "doppelganger.yaml"


def test_serve_flags_override_environment(monkeypatch):
    monkeypatch.setenv("DOPPELGANGER_PORT", "4000")
    args = cli._parse_args(["serve", "--stdio", "-f", "https://example.com/d.yaml", "-p", "8081"])
    settings = cli.serve_settings_from_args(args, ServeSettings.from_env())
    assert settings.stdio is True
    assert settings.http is False
    assert settings.port == 8081
    assert settings.source == "https://example.com/d.yaml"


def test_clone_arguments(monkeypatch):
    monkeypatch.setenv("DOPPELGANGER_PLACEHOLDER", "from env")
    args = cli._parse_args(
        [
            "clone",
            "https://mcp.example.com/mcp",
            "-t",
            "http",
            "-f",
            "json",
            "-H",
            "Authorization: Bearer abc",
            "--keep-validation-keywords",
        ]
    )
    settings = cli.clone_settings_from_args(args, CloneSettings.from_env())
    assert args.headers == [("Authorization", "Bearer abc")]
    assert settings.transport == "http"
    assert settings.format == "json"
    assert settings.placeholder == "from env"
    assert settings.strip_validation_keywords is False


def test_bad_header_rejected():
    with pytest.raises(argparse.ArgumentTypeError):
        cli._header("no separator")


def test_settings_are_cached(monkeypatch):
    first = get_settings()
    monkeypatch.setenv("DOPPELGANGER_PORT", "9999")
    assert get_settings() is first
    reset_settings()
    assert get_settings().serve.port == 9999


def test_invalid_env_values_fall_back(monkeypatch):
    monkeypatch.setenv("DOPPELGANGER_PORT", "not-a-port")
    monkeypatch.setenv("DOPPELGANGER_CLONE_FORMAT", "xml")
    assert ServeSettings.from_env().port == 3000
    assert CloneSettings.from_env().format == "yaml"


def test_serve_checks_reject_bad_port():
    settings = ServeSettings.from_env().with_transports()
    run_serve_checks(settings)
    with pytest.raises(DecoyServerError, match="port must be between"):
        run_serve_checks(
            ServeSettings(
                source="d.yaml",
                stdio=False,
                http=True,
                host="0.0.0.0",
                port=70000,
                json_response=True,
                log_level="INFO",
            )
        )


@pytest.mark.asyncio
async def test_serve_with_missing_config_exits_non_zero(tmp_path, capsys):
    code = await cli.main(["serve", "--http", "-f", str(tmp_path / "missing.yaml")])
    assert code == 1
    assert "Config file not found" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_serve_with_invalid_config_lists_violations(tmp_path, capsys):
    path = tmp_path / "broken.yaml"
    path.write_text(
        "server:\n  name: x\ntools:\n  - response:\n      content: []\n", encoding="utf-8"
    )
    code = await cli.main(["serve", "-f", str(path)])
    assert code == 1
    assert "tools.0.name" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_clone_failure_exits_non_zero(tmp_path, capsys):
    output = tmp_path / "out.yaml"
    code = await cli.main(
        ["clone", "doppelganger-test-command-that-does-not-exist", "-o", str(output)]
    )
    assert code == 1
    assert not output.exists()
    assert "Clone failed" in capsys.readouterr().err
