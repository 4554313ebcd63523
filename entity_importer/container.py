"""Wiring of the importer services for the CLI and the API."""

import logging
from dataclasses import dataclass
from typing import Optional

from .config import ImporterSettings
from .orchestrator import ImportOrchestrator
from .services.dependencies import PipelineManager
from .services.discovery_cache import CompiledPipelineCache, get_discovery_cache
from .services.executor import EntityWriter, RecordExecutor
from .services.profiles import ProfileService
from .services.transforms import TransformRegistry
from .sources import SourceRegistry
from .storage.config_store import ConfigStore, JsonConfigStore
from .storage.file_store import FileStore

logger = logging.getLogger(__name__)


@dataclass
class ImporterServices:
    """The set of services one importer process works with."""
    settings: ImporterSettings
    store: ConfigStore
    file_store: FileStore
    registry: TransformRegistry
    profiles: ProfileService
    manager: PipelineManager
    executor: RecordExecutor
    orchestrator: ImportOrchestrator

    @classmethod
    def from_settings(
        cls,
        settings: ImporterSettings,
        store: Optional[ConfigStore] = None,
        writer: Optional[EntityWriter] = None
    ) -> "ImporterServices":
        """
        Build the services for a settings object.

        Args:
            settings: Importer settings
            store: Configuration store (defaults to a JSON store in config_dir)
            writer: Entity writer (defaults to the in-memory writer)
        """
        store = store or JsonConfigStore(settings.config_dir)
        file_store = FileStore(
            temp_dir=settings.temp_dir,
            retries=settings.http_retries,
            backoff_factor=settings.http_backoff,
        )
        registry = TransformRegistry()
        discovery = get_discovery_cache()

        manager = PipelineManager(
            store,
            registry=registry,
            strict=settings.strict_plugins,
            cache=CompiledPipelineCache(discovery),
        )
        executor = RecordExecutor(
            store,
            registry=registry,
            writer=writer,
            file_store=file_store,
            settings=settings,
            sources=SourceRegistry(),
        )

        logger.debug(f"Initialized importer services with config dir {settings.config_dir}")
        return cls(
            settings=settings,
            store=store,
            file_store=file_store,
            registry=registry,
            profiles=ProfileService(store, discovery),
            manager=manager,
            executor=executor,
            orchestrator=ImportOrchestrator(manager, executor, store),
        )
