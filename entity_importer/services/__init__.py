"""Core importer services."""

from .compiler import PipelineCompiler, compile_pipeline
from .dependencies import PipelineManager, dependency_pipelines, resolve_dependencies
from .discovery_cache import (
    DISCOVERY_TAG,
    CompiledPipelineCache,
    DiscoveryCache,
    get_discovery_cache,
)
from .executor import EntityWriter, InMemoryEntityWriter, PipelineExecutor, RecordExecutor
from .field_mappings import mappings_for_bundle, mappings_for_profile
from .profiles import ProfileService
from .transforms import LOOKUP_PLUGIN_ID, Capability, TransformRegistry

__all__ = [
    "PipelineCompiler",
    "compile_pipeline",
    "PipelineManager",
    "dependency_pipelines",
    "resolve_dependencies",
    "DISCOVERY_TAG",
    "CompiledPipelineCache",
    "DiscoveryCache",
    "get_discovery_cache",
    "EntityWriter",
    "InMemoryEntityWriter",
    "PipelineExecutor",
    "RecordExecutor",
    "mappings_for_bundle",
    "mappings_for_profile",
    "ProfileService",
    "LOOKUP_PLUGIN_ID",
    "Capability",
    "TransformRegistry",
]
