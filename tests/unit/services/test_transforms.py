"""Unit tests for the transform plugin registry."""

import pytest

from entity_importer.services.transforms import LOOKUP_PLUGIN_ID, Capability, TransformRegistry


def test_builtin_plugins_are_registered(registry):
    for plugin_id in ("default_value", "trim", "explode", "format_date", LOOKUP_PLUGIN_ID):
        assert registry.has(plugin_id)


def test_process_info_lists_form_capable_plugins(registry):
    """Every form-capable plugin is offered with its label."""
    registry.register("hidden", lambda value, settings, row, context: value, capabilities=[Capability.PLAIN_TRANSFORM])

    info = registry.process_info()

    assert info["options"]["trim"] == "Trim"
    assert "hidden" not in info["options"]
    assert set(info["options"]) == set(info["instances"])


def test_lookup_plugin_has_lookup_capability(registry):
    assert [p.id for p in registry.plugins_with(Capability.LOOKUP)] == [LOOKUP_PLUGIN_ID]


def test_empty_registry_has_no_plugins():
    assert not TransformRegistry(register_builtins=False).has("trim")


def test_explode_respects_limit(registry):
    explode = registry.get("explode")

    assert explode("a|b|c", {"delimiter": "|", "limit": 2}, {}, {}) == ["a", "b|c"]


def test_default_value_only_fills_empty_values(registry):
    default_value = registry.get("default_value")

    assert default_value("", {"default_value": "n/a"}, {}, {}) == "n/a"
    assert default_value("x", {"default_value": "n/a"}, {}, {}) == "x"


def test_format_date_parses_free_form_dates(registry):
    format_date = registry.get("format_date")

    assert format_date("March 5, 2021", {"to_format": "%d/%m/%Y"}, {}, {}) == "05/03/2021"


def test_format_date_rejects_garbage(registry):
    with pytest.raises(ValueError):
        registry.get("format_date")("not a date", {}, {}, {})


def test_lookup_tries_pipelines_in_order(registry):
    """The first pipeline with a match provides the destination id."""
    ids = {("entity_import:p3:tag", "7"): "42"}
    context = {"lookup": lambda pipeline_id, value: ids.get((pipeline_id, value))}

    result = registry.get(LOOKUP_PLUGIN_ID)(
        "7", {"migration": ["entity_import:p2:page", "entity_import:p3:tag"]}, {}, context
    )

    assert result == "42"
