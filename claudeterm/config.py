"""Configuration loading: defaults, then TOML file, then environment."""

import logging
import os
import tomllib
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "claudeterm" / "config.toml"


@dataclass
class ClaudeTermConfig:
    # Claude settings
    claude_model: Optional[str] = None
    claude_path: str = "claude"

    # Rendering
    style: str = "dark"
    code_theme: Optional[str] = None
    width: Optional[int] = None
    partial: bool = True
    show_thinking: bool = False

    # Logging
    log_level: str = "INFO"


def load_env_config() -> dict[str, Any]:
    """Load configuration from CLAUDETERM_* environment variables."""
    config: dict[str, Any] = {}

    if model := os.environ.get("CLAUDETERM_MODEL"):
        config["claude_model"] = model
    if path := os.environ.get("CLAUDETERM_CLAUDE_PATH"):
        config["claude_path"] = path
    if style := os.environ.get("CLAUDETERM_STYLE"):
        config["style"] = style
    if theme := os.environ.get("CLAUDETERM_CODE_THEME"):
        config["code_theme"] = theme
    if width := os.environ.get("CLAUDETERM_WIDTH"):
        try:
            config["width"] = int(width)
        except ValueError:
            logger.warning("Ignoring non-integer CLAUDETERM_WIDTH=%r", width)
    if level := os.environ.get("CLAUDETERM_LOG_LEVEL"):
        config["log_level"] = level

    return config


def load_toml_config(path: Optional[Path] = None) -> dict[str, Any]:
    """Load the [claudeterm] table (or top level) of a TOML config file."""
    toml_path = path or DEFAULT_CONFIG_PATH
    if not toml_path.exists():
        return {}
    try:
        with open(toml_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Ignoring unreadable config file %s: %s", toml_path, e)
        return {}
    return data.get("claudeterm", data)


def load_config(path: Optional[Path] = None, **overrides: Any) -> ClaudeTermConfig:
    """Build the effective config; later sources win and None means unset."""
    known = {f.name for f in fields(ClaudeTermConfig)}
    merged: dict[str, Any] = {}
    for source in (load_toml_config(path), load_env_config(), overrides):
        for key, value in source.items():
            if key not in known:
                logger.warning("Ignoring unknown config key %r", key)
                continue
            if value is not None:
                merged[key] = value
    return replace(ClaudeTermConfig(), **merged)
