"""Importer exception hierarchy.

Every failure raised by the importer carries a stable ``kind`` and the id of
the offending record (profile, bundle, pipeline or file) so callers can turn
it into a single status message without parsing text.
"""

from typing import Any, Dict, Optional


class ImporterError(Exception):
    """Base exception for all importer failures."""

    kind = "importer_error"

    def __init__(self, message: str, offending_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.offending_id = offending_id

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "kind": self.kind,
            "message": self.message,
            "offending_id": self.offending_id,
        }


class ProfileNotFound(ImporterError):
    """Raised when an import profile cannot be loaded by id."""

    kind = "profile_not_found"


class InvalidBundle(ImporterError):
    """Raised when a bundle is not in the profile's allowed bundles."""

    kind = "invalid_bundle"

    def __init__(self, profile_id: str, bundle: str):
        super().__init__(
            f"Bundle '{bundle}' is not allowed by importer '{profile_id}'",
            offending_id=bundle,
        )
        self.profile_id = profile_id
        self.bundle = bundle


class MissingSourceField(ImporterError):
    """Raised at run time when a record lacks a mapped source field."""

    kind = "missing_source_field"

    def __init__(self, field: str, destination: str, pipeline_id: Optional[str] = None):
        super().__init__(
            f"Source field '{field}' for destination '{destination}' is missing from the record",
            offending_id=field,
        )
        self.field = field
        self.destination = destination
        self.pipeline_id = pipeline_id


class FileUnreadable(ImporterError):
    """Raised when an uploaded source file cannot be opened or decoded."""

    kind = "file_unreadable"


class FileUnwritable(ImporterError):
    """Raised when the merge target file cannot be opened for writing."""

    kind = "file_unwritable"


class ConfigurationInconsistency(ImporterError):
    """Raised when stored configuration references something unresolvable."""

    kind = "configuration_inconsistency"


class DependencyCycle(ConfigurationInconsistency):
    """Raised when pipeline lookup dependencies form a cycle."""

    kind = "dependency_cycle"
