"""
Configuration management for tubelink.

This module handles loading, validating, and providing access to the
application configuration stored in config.yaml.

The configuration file is optional. When it is missing every setting
falls back to its default, so a bare `tubelink <url>` only needs the
YouTube API key in the environment.

Example config.yaml:
    youtube:
      api_key_env: "YOUTUBE_API_KEY"   # Environment variable holding the key
      timeout: 10

    resolver:
      limit: 3          # Max collection members resolved per request
      sequential: false # Resolve members one at a time
      locale: "en-GB"   # Forces page titles into the expected language
      timeout: 10

    output:
      log_directory: null  # Optional: write log files here

Environment Overrides:
    SEQUENTIAL - if set (to any value), forces resolver.sequential to True.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from tubelink.core.exceptions import ConfigError


# Default configuration file name (looked up in current working directory)
CONFIG_FILENAME = "config.yaml"

# Environment variable that forces sequential collection processing
SEQUENTIAL_ENV_VAR = "SEQUENTIAL"

DEFAULT_API_KEY_ENV = "YOUTUBE_API_KEY"
DEFAULT_LIMIT = 3
DEFAULT_LOCALE = "en-GB"
DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class YouTubeConfig:
    """
    YouTube search configuration.

    Attributes:
        api_key_env: Name of the environment variable holding the
                     YouTube Data API key. The key itself is read at
                     search time, never stored in the config.
        timeout: Per-request timeout for search calls, in seconds.
    """
    api_key_env: str = DEFAULT_API_KEY_ENV
    timeout: float = DEFAULT_TIMEOUT


@dataclass(frozen=True)
class ResolverConfig:
    """
    Page resolution configuration.

    Attributes:
        limit: Fan-out limit. Maximum number of collection members
               resolved per collection request, and the number of
               concurrent workers.
        sequential: Resolve and search members one at a time, in
                    document order.
        locale: Value of the locale query parameter added to every
                page URL. Title patterns expect English titles.
        timeout: Per-request timeout for page fetches, in seconds.
    """
    limit: int = DEFAULT_LIMIT
    sequential: bool = False
    locale: str = DEFAULT_LOCALE
    timeout: float = DEFAULT_TIMEOUT


@dataclass(frozen=True)
class OutputConfig:
    """
    Output configuration.

    Attributes:
        log_directory: Directory for log files, or None to log to the
                       console only. ~ is expanded.
    """
    log_directory: Path | None = None


@dataclass(frozen=True)
class Config:
    """
    Complete application configuration.

    Created by load_config() and treated as immutable.

    Example:
        config = load_config()
        print(f"Resolving up to {config.resolver.limit} tracks per playlist")
    """
    youtube: YouTubeConfig
    resolver: ResolverConfig
    output: OutputConfig


def load_config(config_path: Path | None = None) -> Config:
    """
    Load and validate configuration from config.yaml.

    Args:
        config_path: Optional explicit path to config file.
                     If None, looks for config.yaml in current working directory
                     and falls back to defaults when it isn't there.

    Returns:
        Config: A frozen dataclass containing all configuration values.

    Raises:
        ConfigError: If an explicit config file is not found, the file has
                     invalid YAML syntax, or contains invalid values.

    Behavior:
        1. Locate config file (explicit path or CWD/config.yaml)
        2. Read and parse YAML content (empty file means defaults)
        3. Parse each section, applying defaults
        4. Apply the SEQUENTIAL environment override
        5. Create and return frozen Config object
    """
    explicit = config_path is not None
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME

    raw_config: Any = {}
    if config_path.exists():
        raw_config = _read_yaml(config_path)
    elif explicit:
        raise ConfigError(
            f"Configuration file not found: {config_path}",
            details={"file_path": str(config_path)}
        )

    if raw_config is None:
        raw_config = {}

    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )

    youtube_config = _parse_youtube_config(_section(raw_config, "youtube"))
    resolver_config = _parse_resolver_config(_section(raw_config, "resolver"))
    output_config = _parse_output_config(_section(raw_config, "output"))

    return Config(
        youtube=youtube_config,
        resolver=resolver_config,
        output=output_config
    )


def _read_yaml(config_path: Path) -> Any:
    """Read and parse a YAML file, wrapping failures in ConfigError."""
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e


def _section(raw_config: dict[str, Any], name: str) -> dict[str, Any]:
    """Return an optional top-level section, validating its type."""
    section = raw_config.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigError(
            f"Section '{name}' must be a dictionary",
            details={"section": name}
        )
    return section


def _parse_timeout(section: dict[str, Any], field: str) -> float:
    raw = section.get("timeout")
    if raw is None:
        return DEFAULT_TIMEOUT
    if isinstance(raw, bool) or not isinstance(raw, (int, float)) or raw <= 0:
        raise ConfigError(
            f"'{field}' must be a positive number",
            details={"field": field, "value": raw}
        )
    return float(raw)


def _parse_youtube_config(youtube_section: dict[str, Any]) -> YouTubeConfig:
    """
    Parse and validate the youtube configuration section.

    Raises:
        ConfigError: If api_key_env is empty or timeout is not positive.
    """
    api_key_env = youtube_section.get("api_key_env", DEFAULT_API_KEY_ENV)

    if not isinstance(api_key_env, str) or not api_key_env.strip():
        raise ConfigError(
            "'youtube.api_key_env' must be a non-empty string",
            details={"field": "youtube.api_key_env"}
        )

    return YouTubeConfig(
        api_key_env=api_key_env.strip(),
        timeout=_parse_timeout(youtube_section, "youtube.timeout")
    )


def _parse_resolver_config(resolver_section: dict[str, Any]) -> ResolverConfig:
    """
    Parse and validate the resolver configuration section.

    Raises:
        ConfigError: If limit is not a positive integer, sequential is not
                     a boolean, or locale is empty.
    """
    limit = resolver_section.get("limit", DEFAULT_LIMIT)
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise ConfigError(
            "'resolver.limit' must be a positive integer",
            details={"field": "resolver.limit", "value": limit}
        )

    sequential = resolver_section.get("sequential", False)
    if not isinstance(sequential, bool):
        raise ConfigError(
            "'resolver.sequential' must be true or false",
            details={"field": "resolver.sequential", "value": sequential}
        )

    # Presence of the variable is enough; its value is ignored
    if SEQUENTIAL_ENV_VAR in os.environ:
        sequential = True

    locale = resolver_section.get("locale", DEFAULT_LOCALE)
    if not isinstance(locale, str) or not locale.strip():
        raise ConfigError(
            "'resolver.locale' must be a non-empty string",
            details={"field": "resolver.locale"}
        )

    return ResolverConfig(
        limit=limit,
        sequential=sequential,
        locale=locale.strip(),
        timeout=_parse_timeout(resolver_section, "resolver.timeout")
    )


def _parse_output_config(output_section: dict[str, Any]) -> OutputConfig:
    """
    Parse and validate the output configuration section.

    Expands ~ to home directory. Does NOT create the directory
    (that happens when logging is set up).
    """
    raw_dir = output_section.get("log_directory")
    if raw_dir is None:
        return OutputConfig()

    if not isinstance(raw_dir, str) or not raw_dir.strip():
        raise ConfigError(
            "'output.log_directory' must be a non-empty string or null",
            details={"field": "output.log_directory"}
        )

    return OutputConfig(log_directory=Path(raw_dir.strip()).expanduser().resolve())
