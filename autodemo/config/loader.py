"""Layered TOML configuration.

Layers are applied lowest precedence first:

    default.toml        shared defaults for tours and the collector (required)
    {environment}.toml  per-environment overrides (optional)

AUTODEMO_* environment variables are applied on top of the merged result by
`Settings`, not here.
"""

import os
import tomllib
from pathlib import Path
from typing import Any

CONFIG_DIR_ENV = "AUTODEMO_CONFIG_DIR"
ENVIRONMENT_ENV = "AUTODEMO_ENV"
DEFAULT_ENVIRONMENT = "development"

# The config/ directory at the repository root, next to the package.
PACKAGED_CONFIG_DIR = Path(__file__).resolve().parents[2] / "config"


def get_config_dir() -> Path:
    """Return the directory holding the TOML layers.

    An explicit AUTODEMO_CONFIG_DIR must exist. Without it, a config/
    directory in the working directory is preferred over the packaged one.
    """
    explicit = os.environ.get(CONFIG_DIR_ENV)
    if explicit:
        path = Path(explicit)
        if not path.is_dir():
            raise FileNotFoundError(f"{CONFIG_DIR_ENV} is not a directory: {explicit}")
        return path

    local = Path.cwd() / "config"
    if local.is_dir():
        return local
    return PACKAGED_CONFIG_DIR


def get_environment() -> str:
    """Name of the environment layer, from AUTODEMO_ENV."""
    return os.environ.get(ENVIRONMENT_ENV, "").strip().lower() or DEFAULT_ENVIRONMENT


def config_layers(config_dir: Path, environment: str) -> list[Path]:
    """Existing layer files for environment, lowest precedence first.

    Raises:
        FileNotFoundError: If default.toml is missing from config_dir
    """
    default = config_dir / "default.toml"
    if not default.is_file():
        raise FileNotFoundError(
            f"No default.toml in {config_dir}; create one or set {CONFIG_DIR_ENV}"
        )

    layers = [default]
    override = config_dir / f"{environment}.toml"
    if environment != "default" and override.is_file():
        layers.append(override)
    return layers


def read_layer(path: Path) -> dict[str, Any]:
    with path.open("rb") as f:
        return tomllib.load(f)


def merge_layers(lower: dict[str, Any], upper: dict[str, Any]) -> dict[str, Any]:
    """Overlay upper onto lower without mutating either.

    Tables merge key by key; any other value in upper replaces the one below.
    """
    merged = dict(lower)
    for key, value in upper.items():
        below = merged.get(key)
        if isinstance(below, dict) and isinstance(value, dict):
            merged[key] = merge_layers(below, value)
        else:
            merged[key] = value
    return merged


def load_config() -> dict[str, Any]:
    """Read and merge the layers for the current environment."""
    merged: dict[str, Any] = {}
    for layer in config_layers(get_config_dir(), get_environment()):
        merged = merge_layers(merged, read_layer(layer))
    return merged
