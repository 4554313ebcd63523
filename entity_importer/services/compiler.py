"""Compilation of import profiles into pipeline definitions."""

import copy
import logging
from typing import Any, Dict, List, Optional

from ..errors import ConfigurationInconsistency, InvalidBundle
from ..models.pipeline import PipelineDefinition, ProcessEntry, merge_definitions
from ..models.profile import FieldMapping, ImportProfile
from ..storage.config_store import ConfigStore
from .discovery_cache import CompiledPipelineCache
from .field_mappings import mappings_for_bundle
from .transforms import LOOKUP_PLUGIN_ID, TransformRegistry

logger = logging.getLogger(__name__)


class PipelineCompiler:
    """
    Compiles an import profile and bundle into a pipeline definition.

    The compiled definition has four parts:
    - source: source plugin id, owning profile id and source configuration
    - process: destination path -> bare source field or ordered step chain
    - destination: target entity type and default bundle
    - migration_dependencies: pipelines referenced by lookup transforms

    Compilation reads field mappings from the store and has no other side
    effects. When a registry is given in strict mode, transform plugin ids
    missing from it are rejected; otherwise they are emitted unchanged.
    """

    def __init__(
        self,
        store: ConfigStore,
        registry: Optional[TransformRegistry] = None,
        strict: bool = False,
        cache: Optional[CompiledPipelineCache] = None
    ):
        self.store = store
        self.registry = registry
        self.strict = strict
        self.cache = cache

    def compile(
        self,
        profile: ImportProfile,
        bundle: str,
        overrides: Optional[Dict[str, Any]] = None
    ) -> PipelineDefinition:
        """
        Compile one profile/bundle pair.

        Args:
            profile: Loaded import profile
            bundle: One of the profile's allowed bundles
            overrides: Definition fragment deep-merged over the result

        Returns:
            The compiled pipeline definition

        Raises:
            InvalidBundle: If bundle is not allowed by the profile
            ConfigurationInconsistency: If strict and a plugin id is unknown
        """
        if bundle not in profile.bundles:
            raise InvalidBundle(profile.id, bundle)

        if self.cache is not None and not overrides:
            cached = self.cache.get(profile.id, bundle)
            if cached is not None:
                return copy.deepcopy(cached)

        mappings = mappings_for_bundle(self.store, profile, bundle)

        definition = {
            "id": profile.pipeline_id(bundle),
            "label": f"{profile.label or profile.id}: {bundle}",
            "source": build_source_definition(profile),
            "process": self._build_process_definition(mappings),
            "destination": build_destination_definition(profile, bundle),
            "migration_dependencies": build_dependencies(mappings),
        }

        if self.cache is not None and not overrides:
            self.cache.set(profile.id, bundle, PipelineDefinition.from_dict(copy.deepcopy(definition)))

        if overrides:
            definition = merge_definitions(definition, overrides)

        logger.debug(f"Compiled pipeline {definition['id']} with {len(definition['process'])} process entries")
        return PipelineDefinition.from_dict(definition)

    def _build_process_definition(self, mappings: List[FieldMapping]) -> Dict[str, ProcessEntry]:
        if self.strict and self.registry is not None:
            for mapping in mappings:
                for step in mapping.processing:
                    if not self.registry.has(step.plugin_id):
                        raise ConfigurationInconsistency(
                            f"Field mapping '{mapping.id}' uses unknown transform plugin '{step.plugin_id}'",
                            offending_id=step.plugin_id,
                        )
        return build_process_definition(mappings)


def build_source_definition(profile: ImportProfile) -> Dict[str, Any]:
    """Build the source part; importer_id lets the source re-resolve its profile."""
    source = dict(profile.source_configuration)
    source["plugin"] = profile.source_plugin_id
    source["importer_id"] = profile.id
    return source


def build_destination_definition(profile: ImportProfile, bundle: str) -> Dict[str, Any]:
    return {
        "plugin": f"entity:{profile.entity_type}",
        "default_bundle": bundle,
    }


def build_process_definition(mappings: List[FieldMapping]) -> Dict[str, ProcessEntry]:
    """
    Build the process part as an ordered overwrite over the mappings.

    A mapping without transform steps compiles to its bare source field
    name. Otherwise each step becomes ``{"plugin": id, **settings}`` with
    empty settings dropped, and only the first step carries the ``source``
    directive; later steps consume the previous step's output. A later
    mapping with the same destination replaces an earlier one.
    """
    definition: Dict[str, ProcessEntry] = {}

    for mapping in mappings:
        source = mapping.name
        processes = []

        for index, step in enumerate(mapping.processing):
            process = {"plugin": step.plugin_id}
            process.update(filter_settings(step.settings))
            if index == 0:
                process["source"] = source
            processes.append(process)

        if mapping.destination in definition:
            logger.warning(
                f"Field mapping '{mapping.id}' replaces the process entry for destination '{mapping.destination}'"
            )

        definition[mapping.destination] = processes if processes else source

    return definition


def build_dependencies(mappings: List[FieldMapping]) -> Dict[str, List[str]]:
    """
    Collect lookup dependencies.

    Single-writer: the last mapping using the lookup plugin decides the
    optional list; earlier mappings are not merged in.
    """
    dependencies: Dict[str, List[str]] = {"required": [], "optional": []}

    for mapping in mappings:
        step = mapping.get_processing_step(LOOKUP_PLUGIN_ID)
        if step is None:
            continue

        migration = step.settings.get("migration")
        if isinstance(migration, (list, tuple)):
            dependencies["optional"] = list(migration)
        elif isinstance(migration, dict):
            dependencies["optional"] = list(migration.values())
        elif migration:
            dependencies["optional"] = [migration]
        else:
            dependencies["optional"] = []

    return dependencies


def filter_settings(settings: Dict[str, Any]) -> Dict[str, Any]:
    """Drop empty settings values; numeric zero is kept."""
    return {
        key: value
        for key, value in settings.items()
        if not (value is None or value is False or (isinstance(value, (str, list, tuple, dict)) and not value))
    }


def compile_pipeline(
    profile: ImportProfile,
    bundle: str,
    overrides: Optional[Dict[str, Any]] = None,
    *,
    store: ConfigStore,
    registry: Optional[TransformRegistry] = None,
    strict: bool = False
) -> PipelineDefinition:
    """Compile a profile/bundle pair without caching."""
    return PipelineCompiler(store, registry=registry, strict=strict).compile(profile, bundle, overrides)
