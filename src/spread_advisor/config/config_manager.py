"""
Configuration loading for the spread advisor.

Sources, lowest to highest priority:
- struct defaults
- config.yaml (explicit path, ``SPREAD_ADVISOR_CONFIG``, or the working directory)
- ``${VAR}`` / ``${VAR:default}`` substitutions inside the YAML
- ``SPREAD_ADVISOR_MARKET`` / ``SPREAD_ADVISOR_DEPTH`` / ``ENVIRONMENT`` overrides

A ``.env`` file next to the config (or in the working directory) is loaded
first with python-dotenv and never overrides variables already set.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

import msgspec
import yaml
from dotenv import load_dotenv

from spread_advisor.infrastructure.exceptions.system import ConfigurationError
from .structs import AdvisorConfig

CONFIG_ENV_VAR = "SPREAD_ADVISOR_CONFIG"
_ENV_VAR_PATTERN = re.compile(r'\$\{([^}]+)\}')

logger = logging.getLogger(__name__)

_config: Optional[AdvisorConfig] = None


def _substitute_env_vars(content: str) -> str:
    """
    Substitute environment variables in configuration content.

    Supports ``${VAR_NAME}`` (empty when unset) and ``${VAR_NAME:default}``.
    """
    def replace_var(match):
        var_expr = match.group(1)
        if ':' in var_expr:
            var_name, default_value = var_expr.split(':', 1)
            env_value = os.getenv(var_name.strip())
            return default_value if env_value is None else env_value

        var_name = var_expr.strip()
        env_value = os.getenv(var_name)
        if env_value is None:
            logger.warning(f"Environment variable {var_name} not set - using empty value")
            return ""
        return env_value

    return _ENV_VAR_PATTERN.sub(replace_var, content)


def _candidate_paths(path: Optional[Union[str, Path]]) -> list[Path]:
    if path is not None:
        return [Path(path)]
    candidates = []
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        candidates.append(Path(env_path))
    candidates.append(Path.cwd() / 'config.yaml')
    return candidates


def _load_env_file(config_path: Optional[Path]) -> None:
    env_paths = []
    if config_path is not None:
        env_paths.append(config_path.parent / '.env')
    env_paths.append(Path.cwd() / '.env')

    for env_path in env_paths:
        if env_path.is_file():
            load_dotenv(dotenv_path=env_path, override=False)
            logger.debug(f"Loaded environment variables from: {env_path}")
            return


def _read_yaml(config_path: Path) -> Dict[str, Any]:
    try:
        content = config_path.read_text(encoding='utf-8')
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {config_path}: {e}") from e

    try:
        data = yaml.safe_load(_substitute_env_vars(content))
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Top level of {config_path} must be a mapping")
    return data


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    feed = dict(data.get('feed') or {})
    market = os.getenv('SPREAD_ADVISOR_MARKET')
    if market:
        feed['market'] = market
    depth = os.getenv('SPREAD_ADVISOR_DEPTH')
    if depth:
        try:
            feed['depth'] = int(depth)
        except ValueError as e:
            raise ConfigurationError(f"SPREAD_ADVISOR_DEPTH must be an integer, got {depth!r}",
                                     'feed.depth') from e
    if feed:
        data['feed'] = feed

    environment = os.getenv('ENVIRONMENT')
    if environment:
        data['environment'] = environment
    return data


def load_config(path: Optional[Union[str, Path]] = None) -> AdvisorConfig:
    """
    Load and validate configuration.

    A missing file is only an error when ``path`` was given explicitly;
    otherwise defaults are used.
    """
    config_path = next((p for p in _candidate_paths(path) if p.is_file()), None)
    if path is not None and config_path is None:
        raise ConfigurationError(f"Config file not found: {path}")

    _load_env_file(config_path)

    data: Dict[str, Any] = {}
    if config_path is not None:
        data = _read_yaml(config_path)
        logger.info(f"Loaded configuration from: {config_path}")
    else:
        logger.debug("No config.yaml found - using defaults")

    data = _apply_env_overrides(data)

    try:
        config = msgspec.convert(data, AdvisorConfig)
    except msgspec.ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    config.validate()
    return config


def get_config(path: Optional[Union[str, Path]] = None) -> AdvisorConfig:
    """Return the cached configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config(path)
    return _config


def reset_config() -> None:
    global _config
    _config = None
