"""Configuration storage for import profiles and field mappings."""

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

from ..errors import ConfigurationInconsistency
from ..models.profile import FieldMapping, FieldMappingOptions, ImportProfile

logger = logging.getLogger(__name__)


PROFILE_PREFIX = "entity_import.type."
FIELD_MAPPING_PREFIX = "entity_import.field_mapping."
MAPPING_OPTIONS_PREFIX = "entity_import.field_mapping.options."


class ConfigStore(ABC):
    """
    Key-value configuration storage.

    Records are loadable by id; field mappings are also queryable by their
    owning profile id. Query results come back in the store's natural load
    order, which callers rely on for "last mapping wins" resolution.
    """

    @abstractmethod
    def load_profile(self, profile_id: str) -> Optional[ImportProfile]:
        pass

    @abstractmethod
    def list_profiles(self) -> List[ImportProfile]:
        pass

    @abstractmethod
    def save_profile(self, profile: ImportProfile) -> None:
        pass

    @abstractmethod
    def delete_profile(self, profile_id: str) -> bool:
        pass

    @abstractmethod
    def query_field_mappings(self, importer_type: str) -> List[FieldMapping]:
        """Get all field mappings owned by a profile, in natural load order."""
        pass

    @abstractmethod
    def save_field_mapping(self, mapping: FieldMapping) -> None:
        pass

    @abstractmethod
    def delete_field_mapping(self, mapping_id: str) -> bool:
        pass

    @abstractmethod
    def load_mapping_options(self, importer_id: str) -> Optional[FieldMappingOptions]:
        pass

    @abstractmethod
    def save_mapping_options(self, options: FieldMappingOptions) -> None:
        pass

    @abstractmethod
    def delete_mapping_options(self, importer_id: str) -> bool:
        pass


class InMemoryConfigStore(ConfigStore):
    """Dictionary-backed store; natural order is insertion order."""

    def __init__(self):
        self._profiles: Dict[str, ImportProfile] = {}
        self._mappings: Dict[str, FieldMapping] = {}
        self._options: Dict[str, FieldMappingOptions] = {}

    def load_profile(self, profile_id: str) -> Optional[ImportProfile]:
        return self._profiles.get(profile_id)

    def list_profiles(self) -> List[ImportProfile]:
        return list(self._profiles.values())

    def save_profile(self, profile: ImportProfile) -> None:
        self._profiles[profile.id] = profile

    def delete_profile(self, profile_id: str) -> bool:
        return self._profiles.pop(profile_id, None) is not None

    def query_field_mappings(self, importer_type: str) -> List[FieldMapping]:
        return [m for m in self._mappings.values() if m.importer_type == importer_type]

    def save_field_mapping(self, mapping: FieldMapping) -> None:
        self._mappings[mapping.id] = mapping

    def delete_field_mapping(self, mapping_id: str) -> bool:
        return self._mappings.pop(mapping_id, None) is not None

    def load_mapping_options(self, importer_id: str) -> Optional[FieldMappingOptions]:
        return self._options.get(importer_id)

    def save_mapping_options(self, options: FieldMappingOptions) -> None:
        self._options[options.importer_id] = options

    def delete_mapping_options(self, importer_id: str) -> bool:
        return self._options.pop(importer_id, None) is not None


class JsonConfigStore(ConfigStore):
    """
    Directory of JSON configuration files, one record per file.

    File names follow the configuration names:
    - entity_import.type.<profile id>.json
    - entity_import.field_mapping.<profile>.<bundle>.<name>.json
    - entity_import.field_mapping.options.<profile id>.json

    Natural load order is sorted file name order.
    """

    def __init__(self, directory: str):
        """
        Initialize the store.

        Args:
            directory: Directory holding the configuration files; created
                on first write
        """
        self.directory = Path(directory)

    def load_profile(self, profile_id: str) -> Optional[ImportProfile]:
        data = self._read(f"{PROFILE_PREFIX}{profile_id}")
        return ImportProfile.from_dict(data) if data is not None else None

    def list_profiles(self) -> List[ImportProfile]:
        return [ImportProfile.from_dict(data) for data in self._scan(PROFILE_PREFIX)]

    def save_profile(self, profile: ImportProfile) -> None:
        self._write(f"{PROFILE_PREFIX}{profile.id}", profile.to_dict())

    def delete_profile(self, profile_id: str) -> bool:
        return self._remove(f"{PROFILE_PREFIX}{profile_id}")

    def query_field_mappings(self, importer_type: str) -> List[FieldMapping]:
        mappings = [
            FieldMapping.from_dict(data)
            for data in self._scan(FIELD_MAPPING_PREFIX, exclude=MAPPING_OPTIONS_PREFIX)
        ]
        return [m for m in mappings if m.importer_type == importer_type]

    def save_field_mapping(self, mapping: FieldMapping) -> None:
        self._write(f"{FIELD_MAPPING_PREFIX}{mapping.id}", mapping.to_dict())

    def delete_field_mapping(self, mapping_id: str) -> bool:
        return self._remove(f"{FIELD_MAPPING_PREFIX}{mapping_id}")

    def load_mapping_options(self, importer_id: str) -> Optional[FieldMappingOptions]:
        data = self._read(f"{MAPPING_OPTIONS_PREFIX}{importer_id}")
        return FieldMappingOptions.from_dict(data) if data is not None else None

    def save_mapping_options(self, options: FieldMappingOptions) -> None:
        self._write(f"{MAPPING_OPTIONS_PREFIX}{options.importer_id}", options.to_dict())

    def delete_mapping_options(self, importer_id: str) -> bool:
        return self._remove(f"{MAPPING_OPTIONS_PREFIX}{importer_id}")

    def _path(self, name: str) -> Path:
        return self.directory / f"{name}.json"

    def _read(self, name: str) -> Optional[dict]:
        path = self._path(name)
        if not path.exists():
            return None
        try:
            with open(path, 'r', encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationInconsistency(
                f"Invalid JSON in configuration {name}: {e}",
                offending_id=name,
            ) from e

    def _scan(self, prefix: str, exclude: Optional[str] = None) -> List[dict]:
        """Read every record whose name starts with prefix, sorted by name."""
        records = []
        if not self.directory.exists():
            return records

        for file_path in sorted(self.directory.glob(f"{prefix}*.json")):
            if exclude and file_path.name.startswith(exclude):
                continue
            try:
                with open(file_path, 'r', encoding="utf-8") as f:
                    records.append(json.load(f))
            except json.JSONDecodeError as e:
                logger.error(f"Failed to load configuration from {file_path}: {e}")

        return records

    def _write(self, name: str, data: dict) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        with open(self._path(name), 'w', encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    def _remove(self, name: str) -> bool:
        path = self._path(name)
        if not path.exists():
            return False
        os.remove(path)
        return True
