"""Process-wide pipeline discovery cache."""

import logging
import threading
from typing import Dict, Optional, Tuple

from ..models.pipeline import PipelineDefinition

logger = logging.getLogger(__name__)


DISCOVERY_TAG = "migration_plugins"


class DiscoveryCache:
    """
    Epoch counters keyed by cache tag.

    Invalidating a tag bumps its epoch; anything cached under an older epoch
    is stale. There is no per-entry invalidation.
    """

    def __init__(self):
        self._epochs: Dict[str, int] = {}
        self._lock = threading.Lock()

    def epoch(self, tag: str = DISCOVERY_TAG) -> int:
        return self._epochs.get(tag, 0)

    def invalidate(self, tag: str = DISCOVERY_TAG) -> int:
        """Invalidate everything cached under a tag."""
        with self._lock:
            self._epochs[tag] = self._epochs.get(tag, 0) + 1
            epoch = self._epochs[tag]
        logger.debug(f"Invalidated discovery cache '{tag}' (epoch {epoch})")
        return epoch


_discovery_cache = DiscoveryCache()


def get_discovery_cache() -> DiscoveryCache:
    """Get the process-wide discovery cache."""
    return _discovery_cache


class CompiledPipelineCache:
    """Compiled definitions keyed by (profile id, bundle, discovery epoch)."""

    def __init__(self, discovery: Optional[DiscoveryCache] = None):
        self.discovery = discovery or get_discovery_cache()
        self._entries: Dict[Tuple[str, str, int], PipelineDefinition] = {}

    def _key(self, profile_id: str, bundle: str) -> Tuple[str, str, int]:
        return (profile_id, bundle, self.discovery.epoch())

    def get(self, profile_id: str, bundle: str) -> Optional[PipelineDefinition]:
        return self._entries.get(self._key(profile_id, bundle))

    def set(self, profile_id: str, bundle: str, definition: PipelineDefinition) -> None:
        epoch = self.discovery.epoch()
        # Entries from older epochs can never be hit again
        self._entries = {k: v for k, v in self._entries.items() if k[2] == epoch}
        self._entries[(profile_id, bundle, epoch)] = definition

    def __len__(self) -> int:
        return len(self._entries)
