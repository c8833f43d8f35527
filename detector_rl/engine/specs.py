"""Detectable category table.

The table is built once from plain configuration data and is read-only
afterwards, so it can be shared by any number of agents.
"""

import json
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional

from ..config.config import DEFAULT_DETECTION_SPECS
from .errors import ConfigurationError
from .types import DetectableObjectSpec


def spec_from_dict(data: Mapping[str, Any]) -> DetectableObjectSpec:
    """Build a DetectableObjectSpec from a configuration mapping.

    Args:
        data: Mapping with ``tag`` and ``base_reward`` keys and optional
            ``spawn_probability``, ``object_scale`` and ``debug_color``

    Returns:
        Validated spec

    Raises:
        ConfigurationError: If required keys are missing or values are invalid
    """
    try:
        tag = str(data["tag"])
        base_reward = float(data["base_reward"])
    except KeyError as e:
        raise ConfigurationError(f"Detectable spec missing required field {e}") from e

    if not tag:
        raise ConfigurationError("Detectable spec tag must be non-empty")

    spawn_probability = float(data.get("spawn_probability", 0.5))
    if not 0.0 <= spawn_probability <= 1.0:
        raise ConfigurationError(
            f"spawn_probability for '{tag}' must be in [0, 1], got {spawn_probability}"
        )

    object_scale = float(data.get("object_scale", 1.0))
    if object_scale <= 0.0:
        raise ConfigurationError(f"object_scale for '{tag}' must be positive, got {object_scale}")

    color = tuple(float(c) for c in data.get("debug_color", (1.0, 1.0, 1.0, 1.0)))
    if len(color) == 3:
        color = color + (1.0,)
    if len(color) != 4:
        raise ConfigurationError(f"debug_color for '{tag}' must have 3 or 4 components")

    return DetectableObjectSpec(
        tag=tag,
        base_reward=base_reward,
        spawn_probability=spawn_probability,
        object_scale=object_scale,
        debug_color=color,
    )


class DetectionSpecTable:
    """Read-only mapping from category tag to DetectableObjectSpec."""

    def __init__(self, specs: Iterable[DetectableObjectSpec]):
        table: Dict[str, DetectableObjectSpec] = {}
        for spec in specs:
            if spec.tag in table:
                raise ConfigurationError(f"Duplicate detectable tag '{spec.tag}'")
            table[spec.tag] = spec
        self._specs = MappingProxyType(table)

    @classmethod
    def from_config(cls, entries: Iterable[Mapping[str, Any]]) -> "DetectionSpecTable":
        return cls(spec_from_dict(entry) for entry in entries)

    def match(self, tag: str) -> Optional[DetectableObjectSpec]:
        """Return the spec for ``tag`` or None for non-detectable geometry."""
        return self._specs.get(tag)

    def require(self, tags: Iterable[str]) -> None:
        """Fail fast if any of ``tags`` has no spec.

        Raises:
            ConfigurationError: Listing every unknown tag
        """
        missing = [tag for tag in tags if tag not in self._specs]
        if missing:
            raise ConfigurationError(
                f"No detectable spec configured for spawn categories: {', '.join(missing)}"
            )

    @property
    def tags(self):
        return list(self._specs)

    def __getitem__(self, tag: str) -> DetectableObjectSpec:
        return self._specs[tag]

    def __contains__(self, tag: object) -> bool:
        return tag in self._specs

    def __iter__(self) -> Iterator[DetectableObjectSpec]:
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)


def load_detection_specs(source=None) -> DetectionSpecTable:
    """Load the detectable category table from plain data or a JSON file.

    Args:
        source: A list of spec mappings, a mapping with a ``"detectables"``
            list, a path to a JSON file holding either, or None for the
            default categories

    Returns:
        DetectionSpecTable

    Raises:
        ConfigurationError: If the data is malformed
    """
    if source is None:
        source = DEFAULT_DETECTION_SPECS

    if isinstance(source, (str, Path)):
        with open(source, "r", encoding="utf-8") as f:
            source = json.load(f)

    if isinstance(source, Mapping):
        if "detectables" not in source:
            raise ConfigurationError("Detectable config mapping must contain a 'detectables' list")
        source = source["detectables"]

    return DetectionSpecTable.from_config(source)
