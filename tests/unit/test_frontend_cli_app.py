"""Unit tests for the Sentinel command-line interface."""

import json
from unittest.mock import patch

import pyperclip
import pytest

from sentinel.core.exceptions import (
    AuthenticationError,
    ConfigError,
    DerivationError,
    EncodingError,
    PersistenceConflict,
    SentinelError,
    WalletNotFoundError,
)
from sentinel.frontend.cli import app

PASSWORD = "correct horse battery staple"


# --- Fixtures ---

@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    """Point the CLI at a temp data dir with cheap KDF costs."""
    config_path = tmp_path / "sentinel.toml"
    config_path.write_text(
        "[security]\ntime_cost = 1\nmemory_cost = 8\nparallelism = 1\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("SENTINEL_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("SENTINEL_MASTER_PASSWORD", PASSWORD)
    return ["--config", str(config_path)]


def _run(cli_env, *args):
    return app.main([*cli_env, *args])


def _create(cli_env, capsys, *extra):
    assert _run(cli_env, "create", *extra) == app.EXIT_OK
    out = capsys.readouterr().out
    lines = out.splitlines()
    public_key = lines[0].split(": ", 1)[1]
    return public_key, out


# --- Test 1: exit code mapping ---

@pytest.mark.parametrize(
    "error, code",
    [
        (EncodingError("x"), app.EXIT_ENCODING),
        (AuthenticationError("x"), app.EXIT_AUTH),
        (PersistenceConflict("x"), app.EXIT_CONFLICT),
        (WalletNotFoundError("x"), app.EXIT_NOT_FOUND),
        (DerivationError("x"), app.EXIT_DERIVATION),
        (ConfigError("x"), app.EXIT_CONFIG),
        (SentinelError("x"), app.EXIT_ERROR),
    ],
)
def test_exit_code_for(error, code):
    assert app.exit_code_for(error) == code


# --- Test 2: commands ---

def test_create_and_list(cli_env, capsys):
    public_key, out = _create(cli_env, capsys, "--label", "hot")
    assert "Private key (shown once" in out

    assert _run(cli_env, "list") == app.EXIT_OK
    listed = capsys.readouterr().out
    assert public_key in listed
    assert "hot" in listed


def test_list_empty(cli_env, capsys):
    assert _run(cli_env, "list") == app.EXIT_OK
    assert "No wallets stored." in capsys.readouterr().out


def test_create_with_copy_does_not_print_key(cli_env, capsys):
    with patch("sentinel.frontend.cli.app.copy_to_clipboard") as mock_copy:
        public_key, out = _create(cli_env, capsys, "--copy")
    portable = mock_copy.call_args.args[0]
    assert portable not in out
    assert "copied to clipboard" in out


def test_create_with_copy_falls_back_when_clipboard_fails(cli_env, capsys):
    with patch(
        "sentinel.frontend.cli.app.copy_to_clipboard",
        side_effect=pyperclip.PyperclipException("no clipboard"),
    ):
        assert _run(cli_env, "create", "--copy") == app.EXIT_OK
    captured = capsys.readouterr()
    public_key = captured.out.splitlines()[0].split(": ", 1)[1]
    assert "Private key (shown once" in captured.out
    assert "clipboard unavailable" in captured.err

    assert _run(cli_env, "list") == app.EXIT_OK
    assert public_key in capsys.readouterr().out


def test_show(cli_env, capsys):
    public_key, _ = _create(cli_env, capsys, "--label", "cold")
    assert _run(cli_env, "show", public_key) == app.EXIT_OK
    data = json.loads(capsys.readouterr().out)
    assert data["public_key"] == public_key
    assert data["label"] == "cold"


def test_show_missing(cli_env, capsys):
    assert _run(cli_env, "show", "doesnotexist") == app.EXIT_NOT_FOUND
    assert "not found" in capsys.readouterr().err


def test_import_and_duplicate(cli_env, capsys):
    with patch("sentinel.frontend.cli.app.copy_to_clipboard") as mock_copy:
        public_key, _ = _create(cli_env, capsys, "--copy")
    portable = mock_copy.call_args.args[0]

    with patch("sentinel.frontend.cli.app.getpass.getpass", return_value=portable):
        assert _run(cli_env, "import") == app.EXIT_CONFLICT
    assert "already exists" in capsys.readouterr().err


def test_import_malformed(cli_env, capsys):
    with patch("sentinel.frontend.cli.app.getpass.getpass", return_value="0OIl"):
        assert _run(cli_env, "import") == app.EXIT_ENCODING
    err = capsys.readouterr().err
    assert "invalid key encoding" in err


def test_sign(cli_env, capsys):
    public_key, _ = _create(cli_env, capsys)
    assert _run(cli_env, "sign", public_key, "hello") == app.EXIT_OK
    assert capsys.readouterr().out.strip()


def test_reveal(cli_env, capsys):
    with patch("sentinel.frontend.cli.app.copy_to_clipboard") as mock_copy:
        public_key, _ = _create(cli_env, capsys, "--copy")
    portable = mock_copy.call_args.args[0]

    with patch("sentinel.frontend.cli.app.getpass.getpass", return_value=PASSWORD):
        assert _run(cli_env, "reveal", public_key) == app.EXIT_OK
    assert portable in capsys.readouterr().out

    with patch("sentinel.frontend.cli.app.getpass.getpass", return_value="wrong"):
        assert _run(cli_env, "reveal", public_key) == app.EXIT_AUTH
    captured = capsys.readouterr()
    assert portable not in captured.out + captured.err


def test_wrong_master_password(cli_env, capsys, monkeypatch):
    _create(cli_env, capsys)
    monkeypatch.setenv("SENTINEL_MASTER_PASSWORD", "not it")
    assert _run(cli_env, "list") == app.EXIT_AUTH
    err = capsys.readouterr().err
    assert "authentication failed" in err
    assert "not it" not in err


def test_config_command_needs_no_password(cli_env, capsys, monkeypatch):
    monkeypatch.delenv("SENTINEL_MASTER_PASSWORD")
    assert _run(cli_env, "config") == app.EXIT_OK
    data = json.loads(capsys.readouterr().out)
    assert data["security"]["time_cost"] == 1


def test_bad_config_file(tmp_path, capsys):
    assert app.main(["--config", str(tmp_path / "missing.toml"), "list"]) == app.EXIT_CONFIG
    assert "configuration error" in capsys.readouterr().err


def test_config_path_is_directory(tmp_path, capsys):
    assert app.main(["--config", str(tmp_path), "list"]) == app.EXIT_CONFIG
    assert "cannot read config file" in capsys.readouterr().err


def test_log_level_is_validated(capsys):
    parser = app.build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(["--log-level", "bogus", "list"])
    assert "invalid choice" in capsys.readouterr().err
    assert parser.parse_args(["--log-level", "debug", "list"]).log_level == "DEBUG"


def test_log_level_override(cli_env, capsys, monkeypatch):
    monkeypatch.delenv("SENTINEL_MASTER_PASSWORD")
    assert _run(cli_env, "--log-level", "warning", "config") == app.EXIT_OK
    assert json.loads(capsys.readouterr().out)["logging"]["level"] == "INFO"


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        app.build_parser().parse_args([])
