"""Data models for the importer."""

from .profile import (
    ImportProfile,
    FieldMapping,
    FieldMappingOptions,
    ProcessStep,
)
from .pipeline import (
    PipelineDefinition,
    merge_definitions,
    parse_pipeline_id,
)
from .run import (
    PipelineStatus,
    RunResult,
    RecordOutcome,
    BatchAction,
    PipelineRun,
    BatchResult,
)

__all__ = [
    "ImportProfile",
    "FieldMapping",
    "FieldMappingOptions",
    "ProcessStep",
    "PipelineDefinition",
    "merge_definitions",
    "parse_pipeline_id",
    "PipelineStatus",
    "RunResult",
    "RecordOutcome",
    "BatchAction",
    "PipelineRun",
    "BatchResult",
]
