"""YAML loading for the application configuration document."""

from __future__ import annotations

import collections.abc as cabc
import typing as typ
from pathlib import Path

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

YAML_VERSION = (1, 2)


class ConfigValidationError(Exception):
    """Raised when the configuration document is unreadable or invalid.

    Attributes
    ----------
    issues : list[str]
        Human-readable descriptions of every problem found.

    """

    def __init__(self, issues: list[str]) -> None:
        """Initialise with the list of detected problems."""
        self.issues = issues
        super().__init__("; ".join(issues))


def load_app_config(path: Path | str) -> dict[str, typ.Any]:
    """Parse a YAML configuration file using a YAML 1.2 safe loader."""
    yaml = _yaml()
    try:
        loaded = yaml.load(Path(path).read_text(encoding="utf-8"))
    except (OSError, YAMLError) as exc:
        raise ConfigValidationError([f"failed to parse YAML: {exc}"]) from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigValidationError(["configuration root must be a mapping"])
    return loaded


def config_section(config: cabc.Mapping[str, typ.Any], dotted_path: str) -> object:
    """Return the value at ``dotted_path`` or ``None`` when any key is absent.

    Examples
    --------
    >>> config_section({"catalog": {"providers": {}}}, "catalog.providers")
    {}
    >>> config_section({}, "integrations.bitbucketCloud") is None
    True

    """
    node: object = config
    for key in dotted_path.split("."):
        if not isinstance(node, cabc.Mapping):
            return None
        node = node.get(key)
    return node


def _yaml() -> YAML:
    yaml = YAML(typ="safe")
    yaml.version = YAML_VERSION
    yaml.allow_duplicate_keys = False
    return yaml
