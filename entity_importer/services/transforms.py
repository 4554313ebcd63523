"""Transform plugin registry."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)


LOOKUP_PLUGIN_ID = "entity_import_migrate_lookup"


class Capability(str, Enum):
    """Capability tags a transform plugin registers under."""
    BUILDS_IMPORT_FORM = "builds_import_form"  # Offered when editing a field mapping
    PLAIN_TRANSFORM = "plain_transform"
    LOOKUP = "lookup"  # Resolves values through another pipeline


# func(value, settings, row, context) -> value
TransformFunc = Callable[[Any, Dict[str, Any], Dict[str, Any], Dict[str, Any]], Any]


@dataclass
class TransformPlugin:
    """A registered, stateless value transformer."""
    id: str
    func: TransformFunc
    label: str = ""
    capabilities: FrozenSet[Capability] = field(default_factory=frozenset)
    settings_schema: Dict[str, str] = field(default_factory=dict)  # name -> description

    def __call__(self, value: Any, settings: Dict[str, Any], row: Dict[str, Any], context: Dict[str, Any]) -> Any:
        return self.func(value, settings, row, context)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "capabilities": sorted(c.value for c in self.capabilities),
            "settings": self.settings_schema,
        }


class TransformRegistry:
    """
    Registry of transform plugins keyed by stable id.

    Each plugin registers into explicit capability sets at startup; callers
    ask for a capability instead of inspecting plugin types.
    """

    def __init__(self, register_builtins: bool = True):
        self._plugins: Dict[str, TransformPlugin] = {}
        if register_builtins:
            self._register_builtin_transforms()

    def register(
        self,
        plugin_id: str,
        func: TransformFunc,
        label: str = "",
        capabilities: Iterable[Capability] = (Capability.PLAIN_TRANSFORM,),
        settings_schema: Optional[Dict[str, str]] = None
    ) -> TransformPlugin:
        """Register a transform plugin, replacing any plugin with the same id."""
        plugin = TransformPlugin(
            id=plugin_id,
            func=func,
            label=label or plugin_id,
            capabilities=frozenset(capabilities),
            settings_schema=settings_schema or {},
        )
        if plugin_id in self._plugins:
            logger.warning(f"Replacing transform plugin: {plugin_id}")
        self._plugins[plugin_id] = plugin
        return plugin

    def get(self, plugin_id: str) -> Optional[TransformPlugin]:
        return self._plugins.get(plugin_id)

    def has(self, plugin_id: str) -> bool:
        return plugin_id in self._plugins

    def plugins_with(self, capability: Capability) -> List[TransformPlugin]:
        return [p for p in self._plugins.values() if capability in p.capabilities]

    def process_info(self) -> Dict[str, Dict[str, Any]]:
        """
        Get the plugins offered when building a field mapping.

        Returns:
            Dictionary with ``options`` (id -> label) and ``instances``
            (id -> plugin) for every form-capable plugin
        """
        info: Dict[str, Dict[str, Any]] = {"options": {}, "instances": {}}
        for plugin in self.plugins_with(Capability.BUILDS_IMPORT_FORM):
            info["options"][plugin.id] = plugin.label
            info["instances"][plugin.id] = plugin
        return info

    def _register_builtin_transforms(self) -> None:
        form = (Capability.BUILDS_IMPORT_FORM, Capability.PLAIN_TRANSFORM)

        self.register(
            "default_value", _transform_default_value, "Default value", form,
            {"default_value": "Value used when the source value is empty"},
        )
        self.register("trim", _transform_trim, "Trim", form)
        self.register(
            "explode", _transform_explode, "Explode", form,
            {"delimiter": "Delimiter to split on (default ',')", "limit": "Maximum number of parts"},
        )
        self.register(
            "format_date", _transform_format_date, "Format date", form,
            {"to_format": "strftime output format (default '%Y-%m-%d')"},
        )
        self.register(
            LOOKUP_PLUGIN_ID, _transform_lookup, "Migrate lookup",
            (Capability.BUILDS_IMPORT_FORM, Capability.LOOKUP),
            {"migration": "Pipeline id, or list of ids, to look the value up in"},
        )


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


def _transform_default_value(value: Any, settings: Dict, row: Dict, context: Dict) -> Any:
    if _is_empty(value):
        return settings.get("default_value")
    return value


def _transform_trim(value: Any, settings: Dict, row: Dict, context: Dict) -> Any:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, list):
        return [v.strip() if isinstance(v, str) else v for v in value]
    return value


def _transform_explode(value: Any, settings: Dict, row: Dict, context: Dict) -> Any:
    if _is_empty(value):
        return []
    delimiter = settings.get("delimiter") or ","
    limit = settings.get("limit")
    if limit:
        return str(value).split(delimiter, int(limit) - 1)
    return str(value).split(delimiter)


def _transform_format_date(value: Any, settings: Dict, row: Dict, context: Dict) -> Any:
    if _is_empty(value):
        return None
    to_format = settings.get("to_format") or "%Y-%m-%d"
    try:
        return date_parser.parse(str(value)).strftime(to_format)
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Cannot parse date '{value}': {e}") from e


def _transform_lookup(value: Any, settings: Dict, row: Dict, context: Dict) -> Any:
    """Resolve a source value to a destination id created by another pipeline."""
    if _is_empty(value):
        return None

    migrations = settings.get("migration") or []
    if not isinstance(migrations, list):
        migrations = [migrations]

    lookup = context.get("lookup")
    if lookup is None:
        return None

    for pipeline_id in migrations:
        destination_id = lookup(pipeline_id, value)
        if destination_id is not None:
            return destination_id
    return None
