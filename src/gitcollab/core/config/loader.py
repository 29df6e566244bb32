"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < project config < env vars
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from gitcollab.core.config.models import GitCollabConfig

logger = logging.getLogger(__name__)

PROJECT_CONFIG_FILE = ".gitcollab.json"


def get_xdg_config_home() -> Path:
    """
    Get XDG config home directory.

    Returns:
        Path to config directory (defaults to ~/.config)
    """
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_user_config_path() -> Path:
    """
    Get path to user configuration file.

    Returns:
        Path to ~/.config/gitcollab/config.json (or XDG equivalent)
    """
    return get_xdg_config_home() / "gitcollab" / "config.json"


def get_project_config_path(project_dir: Path | None = None) -> Path:
    """
    Get path to project configuration file.

    Args:
        project_dir: Workspace directory (defaults to current directory)

    Returns:
        Path to .gitcollab.json in the workspace root
    """
    if project_dir is None:
        project_dir = Path.cwd()
    return project_dir / PROJECT_CONFIG_FILE


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence over values in `base`.
    Nested dicts are merged, not replaced.

    Example:
        >>> deep_merge({"a": 1, "b": {"x": 10}}, {"b": {"y": 20}})
        {'a': 1, 'b': {'x': 10, 'y': 20}}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON file, returning None if it doesn't exist or is invalid.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON as dict, or None
    """
    if not path.exists():
        return None

    try:
        with path.open() as f:
            data = json.load(f)
            if isinstance(data, dict):
                return data
            return None
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to parse config at %s: %s", path, e)
        return None


def _set_nested(config: dict[str, Any], section: str, key: str, value: Any) -> None:
    config.setdefault(section, {})
    config[section][key] = value


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Supported env vars:
        GITCOLLAB_API_URL - overrides github.api_url
        GITCOLLAB_GIT_TIMEOUT - overrides git.timeout
        GITCOLLAB_POST_MERGE_DELAY - overrides sync.post_merge_delay

    Args:
        config_dict: Configuration dictionary to override

    Returns:
        Configuration dictionary with env var overrides applied
    """
    result = deep_merge({}, config_dict)

    if api_url := os.environ.get("GITCOLLAB_API_URL"):
        _set_nested(result, "github", "api_url", api_url)

    if timeout_str := os.environ.get("GITCOLLAB_GIT_TIMEOUT"):
        try:
            timeout = int(timeout_str)
            if timeout < 1:
                logger.warning("GITCOLLAB_GIT_TIMEOUT must be >= 1, got %d, ignoring", timeout)
            else:
                _set_nested(result, "git", "timeout", timeout)
        except ValueError:
            logger.warning("Invalid GITCOLLAB_GIT_TIMEOUT value '%s', ignoring", timeout_str)

    if delay_str := os.environ.get("GITCOLLAB_POST_MERGE_DELAY"):
        try:
            delay = float(delay_str)
            if delay < 0:
                logger.warning("GITCOLLAB_POST_MERGE_DELAY must be >= 0, got %s, ignoring", delay)
            else:
                _set_nested(result, "sync", "post_merge_delay", delay)
        except ValueError:
            logger.warning("Invalid GITCOLLAB_POST_MERGE_DELAY value '%s', ignoring", delay_str)

    return result


def load_config(project_dir: Path | None = None) -> GitCollabConfig:
    """
    Load configuration from all layers.

    Args:
        project_dir: Workspace directory (defaults to current directory)

    Returns:
        Validated GitCollabConfig
    """
    merged: dict[str, Any] = GitCollabConfig().model_dump()

    user_config = load_json_file(get_user_config_path())
    if user_config:
        merged = deep_merge(merged, user_config)

    project_config = load_json_file(get_project_config_path(project_dir))
    if project_config:
        merged = deep_merge(merged, project_config)

    merged = apply_env_overrides(merged)

    try:
        return GitCollabConfig.model_validate(merged)
    except ValidationError as e:
        logger.warning("Invalid configuration file values, using defaults: %s", e)
        return GitCollabConfig.model_validate(apply_env_overrides(GitCollabConfig().model_dump()))
