"""
Configuration management for Team Health Guard.

Loads settings from:
1. .team-health-guard.toml (local config)
2. pyproject.toml (project-level config, [tool.team-health-guard])

Environment variables (TEAM_HEALTH_GUARD_<NAME>, also read from a .env
file) take priority over both files.
"""

import os
import tomllib
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Config files are looked up relative to the working directory
PROJECT_ROOT = Path.cwd()

LOCAL_CONFIG_NAME = ".team-health-guard.toml"
TOOL_KEY = "team-health-guard"
ENV_PREFIX = "TEAM_HEALTH_GUARD_"

DEFAULT_THRESHOLDS: dict[str, int] = {
    "inactive_branch_days": 3,
    "stale_pr_hours": 48,
    "cycle_time_threshold_hours": 72,
    "wip_threshold": 3,
    "wip_recent_days": 7,
    "concentration_threshold": 80,
    "top_critical_files": 10,
}

# Explicit overrides (set via set_threshold)
_THRESHOLD_OVERRIDES: dict[str, int] = {}


def load_config_file(config_path: Path) -> dict:
    """Load a TOML configuration file."""
    if not config_path.exists():
        return {}
    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except Exception as e:
        raise ValueError(f"Failed to load config from {config_path}: {e}") from e


def get_tool_config() -> dict:
    """
    Return the [tool.team-health-guard] table.

    Priority:
    1. .team-health-guard.toml (local config, highest priority)
    2. pyproject.toml (project-level config, fallback)
    """
    local_config_path = PROJECT_ROOT / LOCAL_CONFIG_NAME
    if local_config_path.exists():
        config = load_config_file(local_config_path)
        section = config.get("tool", {}).get(TOOL_KEY, {})
        if section:
            return section

    pyproject_path = PROJECT_ROOT / "pyproject.toml"
    if pyproject_path.exists():
        config = load_config_file(pyproject_path)
        return config.get("tool", {}).get(TOOL_KEY, {})

    return {}


def get_threshold(name: str) -> int:
    """
    Get a heuristic threshold.

    Priority:
    1. Explicitly set value via set_threshold()
    2. TEAM_HEALTH_GUARD_<NAME> environment variable
    3. [tool.team-health-guard.thresholds] in config files
    4. Built-in default

    Raises:
        KeyError: If the threshold name is unknown.
    """
    if name not in DEFAULT_THRESHOLDS:
        raise KeyError(f"Unknown threshold '{name}'")

    if name in _THRESHOLD_OVERRIDES:
        return _THRESHOLD_OVERRIDES[name]

    env_value = os.getenv(f"{ENV_PREFIX}{name.upper()}")
    if env_value:
        try:
            return int(env_value)
        except ValueError:
            pass

    thresholds = get_tool_config().get("thresholds", {})
    if name in thresholds:
        return int(thresholds[name])

    return DEFAULT_THRESHOLDS[name]


def set_threshold(name: str, value: int) -> None:
    """
    Set a threshold explicitly.

    Raises:
        KeyError: If the threshold name is unknown.
        ValueError: If the value is negative.
    """
    if name not in DEFAULT_THRESHOLDS:
        raise KeyError(f"Unknown threshold '{name}'")
    if value < 0:
        raise ValueError(f"Threshold '{name}' must not be negative, got {value}")
    _THRESHOLD_OVERRIDES[name] = value


def reset_thresholds() -> None:
    """Drop all explicit threshold overrides."""
    _THRESHOLD_OVERRIDES.clear()


def get_live_weight_overrides() -> dict[str, float]:
    """
    Live-formula weight overrides from [tool.team-health-guard.weights.live].

    Returns an empty dict when none are configured. Validation happens when
    the overrides are applied to the scorer.
    """
    weights = get_tool_config().get("weights", {}).get("live", {})
    if not isinstance(weights, dict):
        raise ValueError(
            "[tool.team-health-guard.weights.live] should be a table of metric "
            "names to weights."
        )
    return dict(weights)
