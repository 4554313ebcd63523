"""Pipeline execution against an entity writer."""

import itertools
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from ..config import ImporterSettings
from ..errors import ConfigurationInconsistency, MissingSourceField
from ..models.pipeline import PipelineDefinition
from ..models.run import BatchAction, PipelineRun, PipelineStatus, RecordOutcome, RunResult
from ..sources import ImportSource, SourceRegistry
from ..storage.config_store import ConfigStore
from ..storage.file_store import FileStore
from .transforms import TransformRegistry

logger = logging.getLogger(__name__)


RecordKey = Tuple[str, ...]


class EntityWriter(ABC):
    """
    Destination for processed records.

    Writers create or update one entity per record and return its id,
    which the executor keeps for lookups and rollback.
    """

    @abstractmethod
    def save(
        self,
        entity_type: str,
        bundle: str,
        values: Dict[str, Any],
        existing_id: Optional[str] = None
    ) -> str:
        """
        Create or update an entity.

        Args:
            entity_type: Target entity type
            bundle: Target bundle
            values: Destination path -> value
            existing_id: Id of a previously imported entity to update

        Returns:
            The entity id
        """
        pass

    @abstractmethod
    def delete(self, entity_type: str, entity_id: str) -> bool:
        """Delete an entity, returning whether it existed."""
        pass


class InMemoryEntityWriter(EntityWriter):
    """Entity writer keeping entities in a dictionary."""

    def __init__(self):
        self.entities: Dict[str, Dict[str, Any]] = {}
        self._ids = itertools.count(1)

    def save(
        self,
        entity_type: str,
        bundle: str,
        values: Dict[str, Any],
        existing_id: Optional[str] = None
    ) -> str:
        entity_id = existing_id if existing_id in self.entities else str(next(self._ids))
        self.entities[entity_id] = {
            "entity_type": entity_type,
            "bundle": bundle,
            "values": dict(values),
        }
        return entity_id

    def delete(self, entity_type: str, entity_id: str) -> bool:
        return self.entities.pop(entity_id, None) is not None

    def of_bundle(self, entity_type: str, bundle: str) -> List[Dict[str, Any]]:
        return [
            e["values"] for e in self.entities.values()
            if e["entity_type"] == entity_type and e["bundle"] == bundle
        ]


class PipelineExecutor(ABC):
    """Runs import and rollback actions for compiled pipelines."""

    @abstractmethod
    def create_source(self, pipeline: PipelineDefinition) -> ImportSource:
        pass

    @abstractmethod
    def import_pipeline(
        self,
        pipeline: PipelineDefinition,
        update: bool = False,
        source: Optional[ImportSource] = None
    ) -> PipelineRun:
        """
        Import every record of the pipeline's source.

        Args:
            pipeline: Compiled pipeline
            update: Re-import records that were imported before
            source: Already-created source to read from

        Returns:
            PipelineRun with record counts
        """
        pass

    @abstractmethod
    def rollback_pipeline(self, pipeline: PipelineDefinition) -> PipelineRun:
        """Delete every entity the pipeline imported."""
        pass

    @abstractmethod
    def status_of(self, pipeline_id: str) -> PipelineStatus:
        pass


class RecordExecutor(PipelineExecutor):
    """
    Executes pipelines record by record.

    Supports:
    - Bare field and step chain process entries
    - Lookups through the id map of another pipeline
    - Skipping previously imported records unless updating
    - Rollback of tracked entities
    """

    def __init__(
        self,
        store: ConfigStore,
        registry: Optional[TransformRegistry] = None,
        writer: Optional[EntityWriter] = None,
        file_store: Optional[FileStore] = None,
        settings: Optional[ImporterSettings] = None,
        sources: Optional[SourceRegistry] = None
    ):
        """
        Initialize the executor.

        Args:
            store: Configuration store sources load their profile from
            registry: Transform plugin registry
            writer: Entity writer (in-memory by default)
            file_store: File registry for uploaded source files
            settings: Importer settings
            sources: Source plugin registry
        """
        self.store = store
        self.registry = registry or TransformRegistry()
        self.writer = writer or InMemoryEntityWriter()
        self.file_store = file_store
        self.settings = settings or ImporterSettings()
        self.sources = sources or SourceRegistry()
        self._id_maps: Dict[str, Dict[RecordKey, str]] = {}
        self._statuses: Dict[str, PipelineStatus] = {}

    def create_source(self, pipeline: PipelineDefinition) -> ImportSource:
        return self.sources.create(pipeline.source, self.store, self.file_store, self.settings)

    def status_of(self, pipeline_id: str) -> PipelineStatus:
        return self._statuses.get(pipeline_id, PipelineStatus.IDLE)

    def id_map(self, pipeline_id: str) -> Dict[RecordKey, str]:
        """Get source key -> entity id for the records a pipeline imported."""
        return dict(self._id_maps.get(pipeline_id, {}))

    def lookup(self, pipeline_id: str, value: Any) -> Optional[str]:
        """Resolve a source id value to the entity a pipeline created for it."""
        return self._id_maps.get(pipeline_id, {}).get(_record_key(value))

    def import_pipeline(
        self,
        pipeline: PipelineDefinition,
        update: bool = False,
        source: Optional[ImportSource] = None
    ) -> PipelineRun:
        run = PipelineRun(pipeline_id=pipeline.id, label=pipeline.label, action=BatchAction.IMPORT)
        run.started_at = datetime.utcnow()

        source = source or self.create_source(pipeline)
        id_fields = list(source.get_ids())
        id_map = self._id_maps.setdefault(pipeline.id, {})

        self._statuses[pipeline.id] = PipelineStatus.IMPORTING
        logger.info(f"Importing {pipeline.id}")

        try:
            for position, row in enumerate(source, start=1):
                self._import_row(pipeline, row, position, id_fields, id_map, update, run)
        finally:
            self._statuses[pipeline.id] = PipelineStatus.IDLE
            run.completed_at = datetime.utcnow()

        run.result = RunResult.COMPLETED
        logger.info(
            f"Imported {pipeline.id}: {run.records_created} created, {run.records_updated} updated, "
            f"{run.records_skipped} skipped, {run.records_failed} failed"
        )
        return run

    def _import_row(
        self,
        pipeline: PipelineDefinition,
        row: Any,
        position: int,
        id_fields: List[str],
        id_map: Dict[RecordKey, str],
        update: bool,
        run: PipelineRun
    ) -> None:
        try:
            key = self._row_key(row, id_fields, position)
            existing_id = id_map.get(key)

            if existing_id is not None and not update:
                run.count(RecordOutcome.SKIPPED)
                return

            values = self.process_row(pipeline, row)
        except MissingSourceField as e:
            e.pipeline_id = pipeline.id
            self._fail(run, position, e.to_dict())
            return
        except ValueError as e:
            self._fail(run, position, {"kind": "transform_error", "message": str(e), "offending_id": None})
            return

        entity_id = self.writer.save(pipeline.entity_type, pipeline.bundle, values, existing_id)
        id_map[key] = entity_id
        run.count(RecordOutcome.UPDATED if existing_id is not None else RecordOutcome.CREATED)

    def _fail(self, run: PipelineRun, position: int, error: Dict[str, Any]) -> None:
        error["record"] = position
        run.errors.append(error)
        run.count(RecordOutcome.FAILED)
        logger.warning(f"Record {position} of {run.pipeline_id} failed: {error['message']}")

    def _row_key(self, row: Any, id_fields: List[str], position: int) -> RecordKey:
        # Without unique identifiers records are keyed by position
        if not id_fields:
            return (f"#{position}",)
        return tuple(str(_source_value(row, name, "id")) for name in id_fields)

    def process_row(self, pipeline: PipelineDefinition, row: Any) -> Dict[str, Any]:
        """
        Evaluate a pipeline's process part against one record.

        Raises:
            MissingSourceField: If a mapped source field is absent
            ConfigurationInconsistency: If a step names an unknown plugin
        """
        context = {"lookup": self.lookup, "pipeline": pipeline}
        values = {}

        for destination, entry in pipeline.process.items():
            if isinstance(entry, str):
                values[destination] = _source_value(row, entry, destination)
                continue

            value = None
            for step in entry:
                if "source" in step:
                    value = _source_value(row, step["source"], destination)

                plugin = self.registry.get(step.get("plugin"))
                if plugin is None:
                    raise ConfigurationInconsistency(
                        f"Pipeline '{pipeline.id}' uses unknown transform plugin '{step.get('plugin')}'",
                        offending_id=step.get("plugin"),
                    )

                settings = {k: v for k, v in step.items() if k not in ("plugin", "source")}
                value = plugin(value, settings, row, context)

            values[destination] = value

        return values

    def rollback_pipeline(self, pipeline: PipelineDefinition) -> PipelineRun:
        run = PipelineRun(pipeline_id=pipeline.id, label=pipeline.label, action=BatchAction.ROLLBACK)
        run.started_at = datetime.utcnow()
        id_map = self._id_maps.get(pipeline.id, {})

        self._statuses[pipeline.id] = PipelineStatus.ROLLING_BACK
        logger.info(f"Rolling back {pipeline.id} ({len(id_map)} entities)")

        try:
            for key, entity_id in list(id_map.items()):
                if self.writer.delete(pipeline.entity_type, entity_id):
                    run.records_deleted += 1
                del id_map[key]
        finally:
            self._statuses[pipeline.id] = PipelineStatus.IDLE
            run.completed_at = datetime.utcnow()

        run.result = RunResult.COMPLETED
        return run


def _source_value(row: Any, field: str, destination: str) -> Any:
    if isinstance(row, dict):
        if field not in row:
            raise MissingSourceField(field, destination)
        return row[field]

    # Headerless rows are addressed by column index
    try:
        return row[int(field)]
    except (ValueError, IndexError, TypeError):
        raise MissingSourceField(field, destination)


def _record_key(value: Any) -> RecordKey:
    if isinstance(value, (list, tuple)):
        return tuple(str(v) for v in value)
    return (str(value),)
