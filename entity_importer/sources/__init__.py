"""Record sources for import pipelines."""

import logging
from typing import Any, Dict, Optional, Type

from ..config import ImporterSettings
from ..errors import ConfigurationInconsistency
from ..storage.config_store import ConfigStore
from ..storage.file_store import FileStore
from .base import ImportSource
from .csv_reader import CsvRecordIterator
from .csv_source import CsvImportSource, merge_csv_files

logger = logging.getLogger(__name__)


class SourceRegistry:
    """Source plugin classes keyed by plugin id."""

    def __init__(self):
        self._sources: Dict[str, Type[ImportSource]] = {}
        self.register(CsvImportSource)

    def register(self, source_class: Type[ImportSource]) -> None:
        self._sources[source_class.plugin_id] = source_class

    def get(self, plugin_id: str) -> Optional[Type[ImportSource]]:
        return self._sources.get(plugin_id)

    def options(self) -> Dict[str, str]:
        """Get source labels keyed by plugin id."""
        return {plugin_id: cls.label for plugin_id, cls in self._sources.items()}

    def create(
        self,
        source_spec: Dict[str, Any],
        store: ConfigStore,
        file_store: Optional[FileStore] = None,
        settings: Optional[ImporterSettings] = None
    ) -> ImportSource:
        """
        Instantiate the source described by a pipeline's source part.

        Raises:
            ConfigurationInconsistency: If the plugin id is not registered
        """
        plugin_id = source_spec.get("plugin")
        source_class = self._sources.get(plugin_id)
        if source_class is None:
            raise ConfigurationInconsistency(
                f"Unknown source plugin: {plugin_id}",
                offending_id=plugin_id,
            )
        return source_class(source_spec, store, file_store=file_store, settings=settings)


__all__ = [
    "ImportSource",
    "CsvRecordIterator",
    "CsvImportSource",
    "merge_csv_files",
    "SourceRegistry",
]
