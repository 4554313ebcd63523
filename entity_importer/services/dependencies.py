"""Pipeline instantiation and dependency resolution."""

import logging
from typing import Any, Dict, List, Optional

from ..errors import ConfigurationInconsistency, DependencyCycle, InvalidBundle
from ..models.pipeline import PipelineDefinition, parse_pipeline_id
from ..models.profile import ImportProfile
from ..storage.config_store import ConfigStore
from .compiler import PipelineCompiler
from .discovery_cache import CompiledPipelineCache
from .transforms import TransformRegistry

logger = logging.getLogger(__name__)


class PipelineManager:
    """Creates pipeline instances from ``entity_import:<profile>:<bundle>`` ids."""

    def __init__(
        self,
        store: ConfigStore,
        registry: Optional[TransformRegistry] = None,
        strict: bool = False,
        cache: Optional[CompiledPipelineCache] = None
    ):
        self.store = store
        self.registry = registry
        self.compiler = PipelineCompiler(store, registry=registry, strict=strict, cache=cache)

    def load_profile(self, profile_id: str) -> Optional[ImportProfile]:
        return self.store.load_profile(profile_id)

    def importer_id_for(self, pipeline_id: str) -> Optional[str]:
        parts = parse_pipeline_id(pipeline_id)
        return parts["importer_id"] if parts else None

    def create_instance(
        self,
        pipeline_id: str,
        overrides: Optional[Dict[str, Any]] = None
    ) -> PipelineDefinition:
        """
        Instantiate a pipeline by id.

        Args:
            pipeline_id: Pipeline id of the form entity_import:<profile>:<bundle>
            overrides: Definition fragment merged over the compiled result

        Raises:
            ConfigurationInconsistency: If the id cannot be instantiated
        """
        parts = parse_pipeline_id(pipeline_id)
        if parts is None:
            raise ConfigurationInconsistency(
                f"Pipeline id '{pipeline_id}' is not an importer pipeline",
                offending_id=pipeline_id,
            )

        profile = self.store.load_profile(parts["importer_id"])
        if profile is None:
            raise ConfigurationInconsistency(
                f"Pipeline '{pipeline_id}' references unknown importer '{parts['importer_id']}'",
                offending_id=pipeline_id,
            )

        try:
            return self.compiler.compile(profile, parts["bundle"], overrides)
        except InvalidBundle as e:
            raise ConfigurationInconsistency(
                f"Pipeline '{pipeline_id}' references a bundle its importer does not allow",
                offending_id=pipeline_id,
            ) from e


def resolve_dependencies(
    pipeline: PipelineDefinition,
    manager: PipelineManager,
    configurations: Optional[Dict[str, Dict[str, Any]]] = None,
    order: bool = True
) -> List[PipelineDefinition]:
    """
    Walk a pipeline's lookup dependencies.

    Only the first optional dependency of each pipeline is followed, so the
    result is a linear chain. Each dependency is instantiated with the
    override fragment found under its id in ``configurations``.

    Args:
        pipeline: Compiled root pipeline
        manager: Pipeline manager used to instantiate dependencies
        configurations: Override fragments keyed by pipeline id
        order: Return dependencies before dependents (default); False
            returns the chain root first

    Returns:
        Ordered list of pipelines including the root

    Raises:
        ConfigurationInconsistency: If a dependency cannot be instantiated
        DependencyCycle: If the chain revisits a pipeline
    """
    configurations = configurations or {}
    chain: Dict[str, PipelineDefinition] = {pipeline.id: pipeline}
    current = pipeline

    while current.optional_dependencies:
        dependency_id = current.optional_dependencies[0]

        if dependency_id in chain:
            raise DependencyCycle(
                f"Pipeline '{current.id}' depends on '{dependency_id}' which is already in the chain "
                f"({' -> '.join(list(chain) + [dependency_id])})",
                offending_id=dependency_id,
            )

        current = manager.create_instance(dependency_id, configurations.get(dependency_id))
        chain[current.id] = current
        logger.debug(f"Resolved dependency {current.id}")

    pipelines = list(chain.values())
    return list(reversed(pipelines)) if order else pipelines


def dependency_pipelines(
    profile: ImportProfile,
    bundle: str,
    manager: PipelineManager,
    configurations: Optional[Dict[str, Dict[str, Any]]] = None,
    order: bool = True
) -> List[PipelineDefinition]:
    """Compile a profile/bundle and resolve its dependency chain."""
    configurations = configurations or {}
    root_id = profile.pipeline_id(bundle)
    root = manager.compiler.compile(profile, bundle, configurations.get(root_id))
    return resolve_dependencies(root, manager, configurations, order)
