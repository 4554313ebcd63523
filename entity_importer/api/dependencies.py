"""Service provider for the API routes."""

from typing import Optional

from ..config import ImporterSettings
from ..container import ImporterServices

_services: Optional[ImporterServices] = None


def get_services() -> ImporterServices:
    """Get the process-wide importer services, built from the environment."""
    global _services
    if _services is None:
        _services = ImporterServices.from_settings(ImporterSettings.from_env())
    return _services
