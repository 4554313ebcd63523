"""Base import source interface."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, List, Optional

from ..config import ImporterSettings
from ..errors import ConfigurationInconsistency
from ..models.pipeline import merge_definitions
from ..models.profile import ImportProfile
from ..storage.config_store import ConfigStore
from ..storage.file_store import FileStore

logger = logging.getLogger(__name__)


class ImportSource(ABC):
    """
    Base class for record sources.

    A source is built from the ``source`` part of a compiled pipeline. It
    knows its owning profile through ``importer_id``, exposes the fields a
    mapping can reference and yields one record per row.
    """

    plugin_id = ""
    label = ""

    def __init__(
        self,
        configuration: Dict[str, Any],
        store: ConfigStore,
        file_store: Optional[FileStore] = None,
        settings: Optional[ImporterSettings] = None
    ):
        """
        Initialize the source.

        Args:
            configuration: Source part of the pipeline definition
            store: Configuration store used to load the owning profile
            file_store: File registry for uploaded files
            settings: Importer settings
        """
        self._configuration = dict(configuration)
        self.store = store
        self.file_store = file_store
        self.settings = settings or ImporterSettings()

    def default_configuration(self) -> Dict[str, Any]:
        return {}

    @property
    def configuration(self) -> Dict[str, Any]:
        """Get the configuration with defaults filled in for missing keys."""
        configuration = self.default_configuration()
        configuration.update(self._configuration)
        return configuration

    def load_importer(self) -> ImportProfile:
        """
        Load the profile that owns this source.

        Raises:
            ConfigurationInconsistency: If importer_id is missing or unknown
        """
        importer_id = self._configuration.get("importer_id")
        if not importer_id:
            raise ConfigurationInconsistency(
                f"Source '{self.plugin_id}' is missing the importer_id directive",
                offending_id=self.plugin_id,
            )

        profile = self.store.load_profile(importer_id)
        if profile is None:
            raise ConfigurationInconsistency(
                f"Source '{self.plugin_id}' references unknown importer '{importer_id}'",
                offending_id=importer_id,
            )
        return profile

    def has_required_configs(self) -> bool:
        return True

    def submit_import_values(self, values: Dict[str, Any]) -> None:
        """Merge values submitted with an import request into the configuration."""
        self._configuration = merge_definitions(self._configuration, values)

    @abstractmethod
    def fields(self) -> List[str]:
        """
        Get the field names records carry.

        Returns:
            List of source field names
        """
        pass

    def get_ids(self) -> Dict[str, Dict[str, Any]]:
        """Get the record-uniqueness key definitions keyed by field name."""
        return {}

    @abstractmethod
    def initialize_iterator(self) -> Iterator[Any]:
        """Create the record iterator."""
        pass

    def __iter__(self) -> Iterator[Any]:
        return iter(self.initialize_iterator())

    def unlink_import_file(self) -> None:
        """Release any temporary file the source created."""
        pass

    def __str__(self) -> str:
        return self.label or self.plugin_id
