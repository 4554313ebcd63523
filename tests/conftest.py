"""Shared fixtures for importer tests."""

from pathlib import Path

import pytest

from entity_importer.config import ImporterSettings
from entity_importer.models.profile import FieldMapping, ImportProfile, ProcessStep
from entity_importer.services.dependencies import PipelineManager
from entity_importer.services.discovery_cache import DiscoveryCache
from entity_importer.services.transforms import TransformRegistry
from entity_importer.storage.config_store import InMemoryConfigStore
from entity_importer.storage.file_store import FileStore


@pytest.fixture
def store() -> InMemoryConfigStore:
    return InMemoryConfigStore()


@pytest.fixture
def registry() -> TransformRegistry:
    return TransformRegistry()


@pytest.fixture
def discovery() -> DiscoveryCache:
    return DiscoveryCache()


@pytest.fixture
def manager(store: InMemoryConfigStore, registry: TransformRegistry) -> PipelineManager:
    return PipelineManager(store, registry=registry)


@pytest.fixture
def settings(tmp_path: Path) -> ImporterSettings:
    return ImporterSettings(config_dir=str(tmp_path / "config"), temp_dir=str(tmp_path))


@pytest.fixture
def file_store(tmp_path: Path) -> FileStore:
    return FileStore(temp_dir=str(tmp_path))


@pytest.fixture
def add_profile(store: InMemoryConfigStore):
    """Factory saving a CSV-sourced profile into the store."""

    def _add(
        profile_id: str,
        bundles,
        entity_type: str = "node",
        has_header: bool = True,
        display_page: bool = False,
        label: str = "",
    ) -> ImportProfile:
        profile = ImportProfile(
            id=profile_id,
            label=label or profile_id.upper(),
            display_page=display_page,
            source={"plugin_id": "entity_import_csv", "configuration": {"has_header": has_header}},
            entity={"type": entity_type, "bundles": list(bundles)},
        )
        store.save_profile(profile)
        return profile

    return _add


@pytest.fixture
def add_mapping(store: InMemoryConfigStore):
    """Factory saving a field mapping into the store."""

    def _add(profile_id: str, bundle: str, name: str, destination: str, steps=(), **kwargs) -> FieldMapping:
        mapping = FieldMapping(
            name=name,
            destination=destination,
            importer_type=profile_id,
            importer_bundle=bundle,
            processing=[ProcessStep(plugin_id=plugin_id, settings=dict(settings)) for plugin_id, settings in steps],
            **kwargs,
        )
        store.save_field_mapping(mapping)
        return mapping

    return _add


@pytest.fixture
def write_csv(tmp_path: Path):
    """Factory writing a CSV file under the test's temp directory."""
    uploads = tmp_path / "uploads"
    uploads.mkdir()

    def _write(name: str, content: str) -> str:
        path = uploads / name
        path.write_text(content, encoding="utf-8")
        return str(path)

    return _write
