"""Unit tests for the profile lifecycle and discovery cache."""

import pytest

from entity_importer.errors import ProfileNotFound
from entity_importer.models.profile import FieldMappingOptions, ImportProfile
from entity_importer.services.compiler import PipelineCompiler
from entity_importer.services.discovery_cache import CompiledPipelineCache
from entity_importer.services.field_mappings import field_mapping_options, mappings_keyed_by_bundle
from entity_importer.services.profiles import ProfileService


def _profile(display_page: bool = False) -> ImportProfile:
    return ImportProfile(
        id="p1",
        label="Articles",
        display_page=display_page,
        source={"plugin_id": "entity_import_csv", "configuration": {}},
        entity={"type": "node", "bundles": ["article"]},
    )


def test_save_new_profile_with_page_marks_page_display_changed(store, discovery):
    service = ProfileService(store, discovery)

    saved = service.save(_profile(display_page=True))

    assert saved.has_page_display_changed()


def test_resave_with_same_page_flag_is_not_a_change(store, discovery):
    service = ProfileService(store, discovery)
    service.save(_profile(display_page=True))

    saved = service.save(_profile(display_page=True))

    assert not saved.has_page_display_changed()


def test_save_invalidates_discovery_cache(store, discovery):
    service = ProfileService(store, discovery)
    before = discovery.epoch()

    service.save(_profile())

    assert discovery.epoch() == before + 1


def test_profile_change_drops_compiled_pipelines(store, discovery, add_mapping):
    """A compiled pipeline is recompiled after the profile changes."""
    service = ProfileService(store, discovery)
    service.save(_profile())
    add_mapping("p1", "article", "full_name", "title")
    compiler = PipelineCompiler(store, cache=CompiledPipelineCache(discovery))
    compiler.compile(store.load_profile("p1"), "article")

    add_mapping("p1", "article", "headline", "title")
    stale = compiler.compile(store.load_profile("p1"), "article")
    service.save(_profile())
    fresh = compiler.compile(store.load_profile("p1"), "article")

    assert stale.process == {"title": "full_name"}
    assert fresh.process == {"title": "headline"}


def test_delete_cascades_to_mappings_and_options(store, discovery, add_mapping):
    service = ProfileService(store, discovery)
    service.save(_profile())
    add_mapping("p1", "article", "full_name", "title")
    store.save_mapping_options(FieldMappingOptions("p1", [{"identifier_name": "id", "identifier_type": "string"}]))

    service.delete("p1")

    assert store.load_profile("p1") is None
    assert store.query_field_mappings("p1") == []
    assert store.load_mapping_options("p1") is None


def test_load_missing_profile_raises(store, discovery):
    with pytest.raises(ProfileNotFound):
        ProfileService(store, discovery).load("missing")


def test_config_dependencies_name_mappings_and_options(store, discovery, add_mapping):
    service = ProfileService(store, discovery)
    profile = service.save(_profile())
    add_mapping("p1", "article", "full_name", "title")
    service.save_mapping_options(FieldMappingOptions("p1", [{"identifier_name": "id", "identifier_type": "string"}]))

    assert service.config_dependencies(profile) == [
        "entity_import.field_mapping.options.p1",
        "entity_import.field_mapping.p1.article.full_name",
    ]


def test_field_mapping_helpers(store, add_profile, add_mapping):
    profile = add_profile("p1", ["article", "page"])
    add_mapping("p1", "article", "full_name", "title", label="Full name")
    add_mapping("p1", "page", "heading", "title")

    assert field_mapping_options(store, profile) == {"full_name": "Full name", "heading": "heading"}
    assert list(mappings_keyed_by_bundle(store, profile)) == ["article", "page"]
