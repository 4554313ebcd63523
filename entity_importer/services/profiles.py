"""Import profile lifecycle."""

import logging
from typing import List, Optional

from ..errors import ProfileNotFound
from ..models.profile import FieldMapping, FieldMappingOptions, ImportProfile
from ..storage.config_store import (
    ConfigStore,
    FIELD_MAPPING_PREFIX,
    MAPPING_OPTIONS_PREFIX,
)
from .discovery_cache import DISCOVERY_TAG, DiscoveryCache, get_discovery_cache
from .field_mappings import mappings_for_profile

logger = logging.getLogger(__name__)


class ProfileService:
    """
    Saves and deletes import profiles.

    Any profile mutation invalidates the pipeline discovery cache as a
    whole. Deleting a profile also deletes its field mappings and its
    field mapping option set.
    """

    def __init__(self, store: ConfigStore, discovery: Optional[DiscoveryCache] = None):
        self.store = store
        self.discovery = discovery or get_discovery_cache()

    def load(self, profile_id: str) -> ImportProfile:
        profile = self.store.load_profile(profile_id)
        if profile is None:
            raise ProfileNotFound(f"Importer not found: {profile_id}", offending_id=profile_id)
        return profile

    def list(self) -> List[ImportProfile]:
        return self.store.list_profiles()

    def save(self, profile: ImportProfile) -> ImportProfile:
        """
        Save a profile.

        Records whether the dedicated page flag changed: for a new profile
        that is the flag itself, otherwise whether it differs from the
        stored copy.
        """
        original = self.store.load_profile(profile.id)
        if original is None:
            profile.page_display_changed = bool(profile.display_page)
        else:
            profile.page_display_changed = bool(profile.display_page) != bool(original.display_page)

        self.store.save_profile(profile)
        self.on_change()
        logger.info(f"Saved importer {profile.id}")
        return profile

    def delete(self, profile_id: str) -> None:
        """Delete a profile with its field mappings and option set."""
        profile = self.load(profile_id)
        self.store.delete_profile(profile_id)

        for mapping in mappings_for_profile(self.store, profile):
            self.store.delete_field_mapping(mapping.id)
        self.store.delete_mapping_options(profile_id)

        self.on_change()
        logger.info(f"Deleted importer {profile_id}")

    def on_change(self) -> None:
        self.discovery.invalidate(DISCOVERY_TAG)

    def has_field_mappings(self, profile: ImportProfile) -> bool:
        return bool(mappings_for_profile(self.store, profile))

    def save_field_mapping(self, mapping: FieldMapping) -> FieldMapping:
        profile = self.load(mapping.importer_type)
        if mapping.importer_bundle not in profile.bundles:
            logger.warning(
                f"Field mapping {mapping.id} targets bundle '{mapping.importer_bundle}' "
                f"which importer {profile.id} does not allow"
            )
        self.store.save_field_mapping(mapping)
        self.on_change()
        return mapping

    def save_mapping_options(self, options: FieldMappingOptions) -> FieldMappingOptions:
        self.load(options.importer_id)
        self.store.save_mapping_options(options)
        self.on_change()
        return options

    def config_dependencies(self, profile: ImportProfile) -> List[str]:
        """Get names of the configuration records the profile depends on."""
        names = []
        options = self.store.load_mapping_options(profile.id)
        if options is not None and options.unique_identifiers:
            names.append(f"{MAPPING_OPTIONS_PREFIX}{profile.id}")
        for mapping in mappings_for_profile(self.store, profile):
            names.append(f"{FIELD_MAPPING_PREFIX}{mapping.id}")
        return names
