"""Field mapping lookups scoped to a profile and bundle."""

from typing import Any, Dict, List

from ..models.profile import FieldMapping, ImportProfile
from ..storage.config_store import ConfigStore


def mappings_for_profile(store: ConfigStore, profile: ImportProfile) -> List[FieldMapping]:
    """Get every field mapping owned by a profile, in natural load order."""
    return [m for m in store.query_field_mappings(profile.id) if m.importer_type == profile.id]


def mappings_for_bundle(
    store: ConfigStore,
    profile: ImportProfile,
    bundle: str
) -> List[FieldMapping]:
    """
    Get the field mappings relevant to one bundle of a profile.

    Matches on exact profile id and exact bundle name. The result keeps the
    store's natural load order; it is not sorted, and the compiler's
    "last mapping wins" rule depends on that order.

    Args:
        store: Configuration store
        profile: Owning import profile
        bundle: Bundle name

    Returns:
        Ordered list of field mappings
    """
    return [m for m in mappings_for_profile(store, profile) if m.importer_bundle == bundle]


def mappings_keyed_by_bundle(
    store: ConfigStore,
    profile: ImportProfile
) -> Dict[str, List[FieldMapping]]:
    keyed: Dict[str, List[FieldMapping]] = {}
    for mapping in mappings_for_profile(store, profile):
        keyed.setdefault(mapping.importer_bundle, []).append(mapping)
    return keyed


def field_mapping_options(store: ConfigStore, profile: ImportProfile) -> Dict[str, str]:
    """Get field mapping labels keyed by mapping name."""
    return {m.name: m.label or m.name for m in mappings_for_profile(store, profile)}


def unique_identifiers(store: ConfigStore, profile: ImportProfile) -> List[Dict[str, Any]]:
    """Get the profile's record-uniqueness identifiers from its option set."""
    options = store.load_mapping_options(profile.id)
    if options is None:
        return []
    return list(options.unique_identifiers)
