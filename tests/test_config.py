import logging

import pytest

from claudeterm import logging_setup
from claudeterm.__main__ import build_parser
from claudeterm.config import ClaudeTermConfig, load_config

ENV_VARS = (
    "CLAUDETERM_MODEL",
    "CLAUDETERM_CLAUDE_PATH",
    "CLAUDETERM_STYLE",
    "CLAUDETERM_CODE_THEME",
    "CLAUDETERM_WIDTH",
    "CLAUDETERM_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def detached_logging():
    yield
    logger = logging.getLogger("claudeterm")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
    logging_setup._RUNTIME = None


def test_defaults_without_file(tmp_path):
    config = load_config(tmp_path / "missing.toml")
    assert config == ClaudeTermConfig()


def test_toml_then_env_then_overrides(tmp_path, monkeypatch):
    path = tmp_path / "config.toml"
    path.write_text(
        "[claudeterm]\n"
        'style = "light"\n'
        'code_theme = "friendly"\n'
        "width = 100\n"
        "partial = false\n"
    )
    monkeypatch.setenv("CLAUDETERM_STYLE", "plain")

    config = load_config(path, width=72, claude_model=None)
    assert config.style == "plain"
    assert config.code_theme == "friendly"
    assert config.width == 72
    assert config.partial is False
    assert config.claude_model is None


def test_unreadable_toml_is_ignored(tmp_path, caplog):
    path = tmp_path / "config.toml"
    path.write_text("style = [unterminated\n")
    with caplog.at_level(logging.WARNING, logger="claudeterm.config"):
        config = load_config(path)
    assert config == ClaudeTermConfig()
    assert "Ignoring unreadable config file" in caplog.text


def test_bad_env_width_is_ignored(tmp_path, monkeypatch):
    monkeypatch.setenv("CLAUDETERM_WIDTH", "wide")
    assert load_config(tmp_path / "missing.toml").width is None


def test_unknown_keys_are_skipped(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('voice = "lessac"\nstyle = "light"\n')
    assert load_config(path).style == "light"


def test_cli_flags_default_to_unset():
    args = build_parser().parse_args([])
    assert args.partial is None
    assert args.show_thinking is None
    assert args.prompt == []

    args = build_parser().parse_args(["--no-partial", "--style", "plain", "explain", "this"])
    assert args.partial is False
    assert args.style == "plain"
    assert args.prompt == ["explain", "this"]


def test_logging_configure_is_idempotent(tmp_path, detached_logging):
    log_file = tmp_path / "logs" / "claudeterm.log"
    runtime = logging_setup.configure("debug", str(log_file))
    assert runtime.level == logging.DEBUG
    assert logging_setup.configure("error") is runtime

    logging.getLogger("claudeterm.streaming.renderer").debug("hello log")
    for handler in logging.getLogger("claudeterm").handlers:
        handler.flush()
    assert "hello log" in log_file.read_text()
