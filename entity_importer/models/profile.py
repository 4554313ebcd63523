"""Import profile and field mapping configuration models."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


PIPELINE_ID_PREFIX = "entity_import"


@dataclass
class ImportProfile:
    """
    Top-level importer configuration.

    Names a record source (plugin id + configuration), a target entity type
    and the bundles of that entity type the profile may produce.
    """
    id: str
    label: str = ""
    description: str = ""
    display_page: bool = False
    source: Dict[str, Any] = field(default_factory=dict)  # plugin_id, configuration
    entity: Dict[str, Any] = field(default_factory=dict)  # type, bundles

    # Set by the profile service when the profile is saved
    page_display_changed: bool = False

    def pipeline_id(self, bundle: str) -> str:
        """Get the pipeline id for one of the profile's bundles."""
        return f"{PIPELINE_ID_PREFIX}:{self.id}:{bundle}"

    @property
    def source_plugin_id(self) -> Optional[str]:
        return self.source.get("plugin_id")

    @property
    def source_configuration(self) -> Dict[str, Any]:
        return self.source.get("configuration") or {}

    @property
    def bundles(self) -> List[str]:
        return list(self.entity.get("bundles") or [])

    @property
    def entity_type(self) -> Optional[str]:
        return self.entity.get("type")

    def first_bundle(self) -> Optional[str]:
        """Get the first allowed bundle, if any."""
        bundles = self.bundles
        return bundles[0] if bundles else None

    def has_multiple_bundles(self) -> bool:
        return len(self.bundles) > 1

    def has_page_display_changed(self) -> bool:
        return self.page_display_changed

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "label": self.label,
            "description": self.description,
            "display_page": self.display_page,
            "source": self.source,
            "entity": self.entity,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImportProfile":
        """Create from dictionary representation."""
        return cls(
            id=data.get("id", ""),
            label=data.get("label", ""),
            description=data.get("description") or "",
            display_page=bool(data.get("display_page", False)),
            source=dict(data.get("source") or {}),
            entity=dict(data.get("entity") or {}),
        )


@dataclass
class ProcessStep:
    """One transform plugin in a field mapping's processing chain."""
    plugin_id: str
    settings: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"plugin_id": self.plugin_id, "settings": self.settings}


@dataclass
class FieldMapping:
    """
    Binding of one source field to one destination property.

    The mapping name is the source field name. Processing steps run in
    order; the first step reads the source field and each later step
    consumes the previous step's output.
    """
    name: str
    destination: str
    importer_type: str  # Owning profile id
    importer_bundle: str
    label: str = ""
    processing: List[ProcessStep] = field(default_factory=list)
    unique_identifier: bool = False
    identifier_type: Optional[str] = None
    identifier_settings: Optional[str] = None

    @property
    def id(self) -> str:
        return f"{self.importer_type}.{self.importer_bundle}.{self.name}"

    def has_processing_plugin(self, plugin_id: str) -> bool:
        return any(step.plugin_id == plugin_id for step in self.processing)

    def get_processing_step(self, plugin_id: str) -> Optional[ProcessStep]:
        for step in self.processing:
            if step.plugin_id == plugin_id:
                return step
        return None

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to the stored configuration shape.

        Steps are keyed by plugin id; a chain that repeats a plugin is
        stored as an ordered list instead so no step is lost.
        """
        plugin_ids = [step.plugin_id for step in self.processing]
        if len(set(plugin_ids)) == len(plugin_ids):
            plugins: Any = {step.plugin_id: {"settings": step.settings} for step in self.processing}
        else:
            plugins = [step.to_dict() for step in self.processing]

        result = {
            "name": self.name,
            "label": self.label,
            "destination": self.destination,
            "importer_type": self.importer_type,
            "importer_bundle": self.importer_bundle,
            "processing": {"plugins": plugins},
        }
        if self.unique_identifier:
            result["unique_identifier"] = True
            result["identifier_type"] = self.identifier_type
            result["identifier_settings"] = self.identifier_settings
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldMapping":
        """
        Create from dictionary representation.

        Processing may be stored as ``{"plugins": {plugin_id: {"settings":
        {...}}}}`` (key order is step order) or as a list of
        ``{"plugin_id": ..., "settings": {...}}`` entries, either bare or
        under ``plugins``.
        """
        return cls(
            name=data.get("name", ""),
            label=data.get("label") or data.get("name", ""),
            destination=data.get("destination", ""),
            importer_type=data.get("importer_type", ""),
            importer_bundle=data.get("importer_bundle", ""),
            processing=_parse_processing(data.get("processing")),
            unique_identifier=bool(data.get("unique_identifier", False)),
            identifier_type=data.get("identifier_type"),
            identifier_settings=data.get("identifier_settings"),
        )


@dataclass
class FieldMappingOptions:
    """Cross-field settings for one profile, such as uniqueness keys."""
    importer_id: str
    unique_identifiers: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "importer_id": self.importer_id,
            "unique_identifiers": {"items": self.unique_identifiers},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldMappingOptions":
        identifiers = data.get("unique_identifiers") or {}
        if isinstance(identifiers, dict):
            identifiers = identifiers.get("items") or []
        return cls(
            importer_id=data.get("importer_id", ""),
            unique_identifiers=list(identifiers),
        )


def _parse_processing(processing: Any) -> List[ProcessStep]:
    if not processing:
        return []

    if isinstance(processing, dict):
        plugins = processing.get("plugins") or {}
        if isinstance(plugins, dict):
            return [
                ProcessStep(plugin_id=plugin_id, settings=dict((info or {}).get("settings") or {}))
                for plugin_id, info in plugins.items()
            ]
        processing = plugins

    steps = []
    for item in processing:
        steps.append(ProcessStep(
            plugin_id=item.get("plugin_id") or item.get("plugin", ""),
            settings=dict(item.get("settings") or {}),
        ))
    return steps
