"""Import orchestrator - runs compiled pipelines in dependency order."""

import logging
from typing import Any, Dict, List, Optional

from .errors import ImporterError, ProfileNotFound
from .models.pipeline import PipelineDefinition
from .models.profile import ImportProfile
from .models.run import BatchAction, BatchResult
from .services.dependencies import PipelineManager, dependency_pipelines
from .services.executor import PipelineExecutor
from .sources import ImportSource
from .storage.config_store import ConfigStore

logger = logging.getLogger(__name__)


class ImportOrchestrator:
    """
    Coordinates importing a profile bundle.

    Handles:
    - Dependency ordering of the bundle's pipeline chain
    - Per-pipeline source configuration and update flags
    - Skipping pipelines whose source has no input
    - Releasing merged temporary files
    - Rollback of a pipeline selection
    """

    def __init__(self, manager: PipelineManager, executor: PipelineExecutor, store: ConfigStore):
        """
        Initialize the orchestrator.

        Args:
            manager: Pipeline manager used to compile and instantiate pipelines
            executor: Executor running each pipeline
            store: Configuration store
        """
        self.manager = manager
        self.executor = executor
        self.store = store

    def load_profile(self, profile_id: str) -> ImportProfile:
        profile = self.store.load_profile(profile_id)
        if profile is None:
            raise ProfileNotFound(f"Importer not found: {profile_id}", offending_id=profile_id)
        return profile

    def plan(
        self,
        profile_id: str,
        bundle: Optional[str] = None,
        configurations: Optional[Dict[str, Dict[str, Any]]] = None
    ) -> List[PipelineDefinition]:
        """
        Get the pipelines an import of the bundle runs, dependencies first.

        Args:
            profile_id: Import profile id
            bundle: Bundle to import (defaults to the profile's first bundle)
            configurations: Override fragments keyed by pipeline id
        """
        profile = self.load_profile(profile_id)
        bundle = bundle or profile.first_bundle()
        return dependency_pipelines(profile, bundle, self.manager, configurations)

    def import_profile(
        self,
        profile_id: str,
        bundle: Optional[str] = None,
        migrations: Optional[Dict[str, Dict[str, Any]]] = None
    ) -> BatchResult:
        """
        Import a profile bundle together with its dependency chain.

        Args:
            profile_id: Import profile id
            bundle: Bundle to import (defaults to the profile's first bundle)
            migrations: Per-pipeline values keyed by pipeline id, each with an
                optional ``configuration`` merged into the source and an
                ``update`` flag

        Returns:
            BatchResult for the import action
        """
        migrations = migrations or {}
        result = BatchResult(action=BatchAction.IMPORT)
        sources: List[ImportSource] = []

        try:
            configurations = {
                pipeline_id: {"source": values["configuration"]}
                for pipeline_id, values in migrations.items()
                if values.get("configuration")
            }
            pipelines = self.plan(profile_id, bundle, configurations)

            for pipeline in pipelines:
                values = migrations.get(pipeline.id, {})
                source = self.executor.create_source(pipeline)
                sources.append(source)

                if not source.has_required_configs():
                    logger.info(f"Skipping {pipeline.id}: source has no input")
                    continue

                run = self.executor.import_pipeline(pipeline, bool(values.get("update")), source)
                result.runs.append(run)

        except ImporterError as e:
            logger.error(f"Import of {profile_id} failed: {e}")
            result.success = False
            result.error = e.to_dict()

        finally:
            for source in sources:
                source.unlink_import_file()

        logger.info(result.message)
        return result

    def run_action(
        self,
        profile_id: str,
        bundle: Optional[str],
        action: BatchAction,
        pipeline_ids: Optional[List[str]] = None
    ) -> BatchResult:
        """
        Run an action over selected pipelines of a profile bundle.

        Only rollback is offered; dependents are rolled back before the
        pipelines they depend on.

        Args:
            profile_id: Import profile id
            bundle: Bundle (defaults to the profile's first bundle)
            action: Action to run
            pipeline_ids: Pipelines to include (defaults to the whole chain)

        Returns:
            BatchResult for the action
        """
        result = BatchResult(action=action)

        if action != BatchAction.ROLLBACK:
            result.success = False
            result.error = {
                "kind": "unsupported_action",
                "message": f"Action '{action.value}' is not supported",
                "offending_id": action.value,
            }
            return result

        try:
            pipelines = list(reversed(self.plan(profile_id, bundle)))
            selected = set(pipeline_ids) if pipeline_ids else None

            for pipeline in pipelines:
                if selected is not None and pipeline.id not in selected:
                    continue
                result.runs.append(self.executor.rollback_pipeline(pipeline))

        except ImporterError as e:
            logger.error(f"Rollback of {profile_id} failed: {e}")
            result.success = False
            result.error = e.to_dict()

        logger.info(result.message)
        return result

    def status(self, profile_id: str, bundle: Optional[str] = None) -> List[Dict[str, Any]]:
        """Get the pipelines of a bundle with their execution status."""
        rows = []
        for pipeline in self.plan(profile_id, bundle):
            status = self.executor.status_of(pipeline.id)
            rows.append({
                "id": pipeline.id,
                "label": pipeline.label,
                "status": status.value,
                "status_label": status.label,
            })
        return rows
