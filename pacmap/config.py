"""
Configuration management for pacmap.

Loads settings from:
1. Explicit setters (CLI flags)
2. PACMAP_* environment variables (a .env file is honoured)
3. .pacmap.toml (local config)
4. pyproject.toml (project-level config)
"""

import os
import tomllib
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()

# project_root is the parent directory of pacmap/
PROJECT_ROOT = Path(__file__).resolve().parent.parent

DEFAULT_PACMAN_EXECUTABLE = "pacman"
DEFAULT_QUERY_TIMEOUT = 30.0
DEFAULT_PLACEMENT = "arc"
DEFAULT_SEPARATION = 15.0
PLACEMENTS = ("arc", "row")

# Global overrides (set by the CLI)
_VERBOSE: bool | None = None
_PLACEMENT: str | None = None
_UNIQUE_EDGES: bool | None = None


def load_config_file(config_path: Path) -> dict:
    """Load a TOML configuration file."""
    if not config_path.exists():
        return {}
    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except Exception as e:
        raise ValueError(f"Failed to load config from {config_path}: {e}") from e


def get_tool_config() -> dict[str, Any]:
    """
    Load the [tool.pacmap] table.

    Priority:
    1. .pacmap.toml (local config, highest priority)
    2. pyproject.toml (project-level config, fallback)

    Returns:
        The [tool.pacmap] table, or an empty dict.
    """
    local_config_path = PROJECT_ROOT / ".pacmap.toml"
    if local_config_path.exists():
        config = load_config_file(local_config_path)
        section = config.get("tool", {}).get("pacmap")
        if section is not None:
            return section

    pyproject_path = PROJECT_ROOT / "pyproject.toml"
    if pyproject_path.exists():
        config = load_config_file(pyproject_path)
        return config.get("tool", {}).get("pacmap", {})

    return {}


def _env_bool(name: str) -> bool | None:
    value = os.getenv(name)
    if value is None or value == "":
        return None
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str) -> float | None:
    value = os.getenv(name)
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def is_verbose_enabled() -> bool:
    """
    Check if verbose console output is enabled.

    Priority:
    1. Explicitly set value via set_verbose()
    2. PACMAP_VERBOSE environment variable
    3. Config file `verbose` key
    4. Default: False
    """
    if _VERBOSE is not None:
        return _VERBOSE

    env_verbose = _env_bool("PACMAP_VERBOSE")
    if env_verbose is not None:
        return env_verbose

    return bool(get_tool_config().get("verbose", False))


def set_verbose(verbose: bool | None) -> None:
    """Set verbose mode explicitly (None restores config lookup)."""
    global _VERBOSE
    _VERBOSE = verbose


def get_pacman_executable() -> str:
    """Get the package manager executable used for queries."""
    env_exe = os.getenv("PACMAP_PACMAN")
    if env_exe:
        return env_exe
    return str(get_tool_config().get("pacman_executable", DEFAULT_PACMAN_EXECUTABLE))


def get_query_timeout() -> float:
    """Get the package query timeout in seconds."""
    env_timeout = _env_float("PACMAP_QUERY_TIMEOUT")
    if env_timeout is not None:
        return env_timeout
    return float(get_tool_config().get("query_timeout", DEFAULT_QUERY_TIMEOUT))


def get_placement() -> str:
    """
    Get the placement strategy for newly discovered dependencies.

    Returns:
        "arc" (half-turn around the parent) or "row" (line under the parent).
    """
    if _PLACEMENT is not None:
        return _PLACEMENT

    placement = os.getenv("PACMAP_PLACEMENT") or get_tool_config().get(
        "placement", DEFAULT_PLACEMENT
    )
    if placement not in PLACEMENTS:
        raise ValueError(
            f"Invalid placement: {placement}. Must be one of: {', '.join(PLACEMENTS)}"
        )
    return placement


def set_placement(placement: str | None) -> None:
    """Set the placement strategy explicitly."""
    global _PLACEMENT
    if placement is not None and placement not in PLACEMENTS:
        raise ValueError(
            f"Invalid placement: {placement}. Must be one of: {', '.join(PLACEMENTS)}"
        )
    _PLACEMENT = placement


def get_separation() -> float:
    """Get the distance between a parent and its freshly placed dependencies."""
    env_sep = _env_float("PACMAP_SEPARATION")
    if env_sep is not None:
        return env_sep
    return float(get_tool_config().get("separation", DEFAULT_SEPARATION))


def is_unique_edges_enabled() -> bool:
    """Check whether parallel edges between the same pair are suppressed."""
    if _UNIQUE_EDGES is not None:
        return _UNIQUE_EDGES

    env_unique = _env_bool("PACMAP_UNIQUE_EDGES")
    if env_unique is not None:
        return env_unique

    return bool(get_tool_config().get("unique_edges", False))


def set_unique_edges(unique: bool | None) -> None:
    """Set edge deduplication explicitly."""
    global _UNIQUE_EDGES
    _UNIQUE_EDGES = unique


def is_none_marker_dropped() -> bool:
    """
    Check whether the literal "None" token is filtered from dependency lists.

    pacman prints "None" for empty lists; by default the token is kept as-is.
    """
    env_drop = _env_bool("PACMAP_DROP_NONE_MARKER")
    if env_drop is not None:
        return env_drop
    parser_config = get_tool_config().get("parser", {})
    return bool(parser_config.get("drop_none_marker", False))


def get_simulation_config() -> dict[str, Any]:
    """
    Get simulation overrides from the [tool.pacmap.simulation] table.

    Returns:
        Dict with any of dt, cooloff_factor, scale, active.
    """
    simulation = dict(get_tool_config().get("simulation", {}))
    for key, env_name in (
        ("dt", "PACMAP_DT"),
        ("cooloff_factor", "PACMAP_COOLOFF_FACTOR"),
        ("scale", "PACMAP_SCALE"),
    ):
        value = _env_float(env_name)
        if value is not None:
            simulation[key] = value
    active = _env_bool("PACMAP_ACTIVE")
    if active is not None:
        simulation["active"] = active
    return simulation
