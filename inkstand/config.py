"""Project configuration for Inkstand.

Configuration lives in ``inkstand.yaml`` at the project root. Every key is
optional; missing keys fall back to ``DEFAULT_CONFIG``.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import yaml

CONFIG_FILENAME = "inkstand.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "content_dir": ".",
    "output_dir": "_manifest",
    "author": "",
    "layouts": {"_posts": "post", "_tabs": "page"},
    "exclude": ["_site", "_manifest", "node_modules", "vendor", "README.md", "CHANGELOG.md"],
    "permalink": "/posts/:identifier/",
}


class ConfigError(Exception):
    """Configuration file that cannot be used.

    Attributes:
        source_path: Path to the configuration file.
        message: Human-readable error message.
    """

    def __init__(self, source_path: Path, message: str):
        self.source_path = source_path
        self.message = message
        super().__init__(f"{source_path}: {message}")


def load_config(project_root: Path) -> dict[str, Any]:
    """Load project configuration from inkstand.yaml.

    Args:
        project_root: Root directory of the project.

    Returns:
        Dictionary containing configuration values, with defaults applied.

    Raises:
        ConfigError: If the file is not valid YAML or has values of the wrong
            shape.
    """
    config_path = project_root / CONFIG_FILENAME
    config = copy.deepcopy(DEFAULT_CONFIG)
    if not config_path.exists():
        return config
    try:
        with open(config_path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(config_path, f"invalid YAML: {exc}") from exc
    if not isinstance(loaded, dict):
        raise ConfigError(config_path, "configuration must be a mapping")
    config.update(loaded)

    if not isinstance(config["layouts"], dict):
        raise ConfigError(config_path, "layouts must map directories to layout names")
    if not isinstance(config["exclude"], list):
        raise ConfigError(config_path, "exclude must be a list of names or patterns")
    if config["author"] is None:
        config["author"] = ""
    config["layouts"] = {
        str(key).strip("/"): str(value) for key, value in config["layouts"].items()
    }
    return config


def content_root(project_root: Path, config: dict[str, Any]) -> Path:
    """Return the absolute content directory for a project."""
    return (project_root / str(config.get("content_dir") or ".")).resolve()


def output_root(project_root: Path, config: dict[str, Any]) -> Path:
    """Return the absolute manifest output directory for a project."""
    return (project_root / str(config.get("output_dir") or "_manifest")).resolve()
