"""Compiled pipeline definition model."""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .profile import PIPELINE_ID_PREFIX


# A process entry is a bare source field name or an ordered chain of steps
ProcessEntry = Union[str, List[Dict[str, Any]]]


@dataclass
class PipelineDefinition:
    """
    Executable description of one profile/bundle import.

    Value object: produced by the compiler, consumed by the orchestrator,
    never persisted.
    """
    id: str
    label: str
    source: Dict[str, Any] = field(default_factory=dict)
    process: Dict[str, ProcessEntry] = field(default_factory=dict)
    destination: Dict[str, Any] = field(default_factory=dict)
    migration_dependencies: Dict[str, List[str]] = field(
        default_factory=lambda: {"required": [], "optional": []}
    )

    @property
    def optional_dependencies(self) -> List[str]:
        return list(self.migration_dependencies.get("optional") or [])

    @property
    def importer_id(self) -> Optional[str]:
        return self.source.get("importer_id")

    @property
    def bundle(self) -> Optional[str]:
        return self.destination.get("default_bundle")

    @property
    def entity_type(self) -> Optional[str]:
        plugin = self.destination.get("plugin") or ""
        if plugin.startswith("entity:"):
            return plugin[len("entity:"):]
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "label": self.label,
            "source": self.source,
            "process": self.process,
            "destination": self.destination,
            "migration_dependencies": self.migration_dependencies,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PipelineDefinition":
        """Create from dictionary representation."""
        dependencies = data.get("migration_dependencies") or {}
        return cls(
            id=data.get("id", ""),
            label=data.get("label", ""),
            source=dict(data.get("source") or {}),
            process=dict(data.get("process") or {}),
            destination=dict(data.get("destination") or {}),
            migration_dependencies={
                "required": list(dependencies.get("required") or []),
                "optional": list(dependencies.get("optional") or []),
            },
        )


def merge_definitions(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep-merge an override fragment over a definition.

    Nested dictionaries merge key by key, lists are concatenated and any
    other override value replaces the base value. Neither input is modified.
    """
    merged = copy.deepcopy(base)

    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = merge_definitions(current, value)
        elif isinstance(current, list) and isinstance(value, list):
            merged[key] = current + copy.deepcopy(value)
        else:
            merged[key] = copy.deepcopy(value)

    return merged


def parse_pipeline_id(pipeline_id: str) -> Optional[Dict[str, str]]:
    """
    Split an ``entity_import:<profile>:<bundle>`` id into its parts.

    Returns:
        Dictionary with ``importer_id`` and ``bundle``, or None if the id
        does not belong to the importer.
    """
    parts = pipeline_id.split(":")
    if len(parts) != 3 or parts[0] != PIPELINE_ID_PREFIX or not parts[1] or not parts[2]:
        return None
    return {"importer_id": parts[1], "bundle": parts[2]}
