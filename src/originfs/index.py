"""
Path index: normalized path -> record identifier.

Populated once per client from the remote snapshot and afterwards changed only
by this client's own operations.
"""
import logging
from typing import Awaitable, Callable, Dict, List, Optional

from .models import Snapshot
from .paths import clean_path
from .singleflight import SingleFlight

logger = logging.getLogger(__name__)

SNAPSHOT_KEY = "snapshot"


class PathIndex:

    def __init__(self):
        self._paths: Dict[str, str] = {}
        self.owner: Optional[str] = None
        self.loaded = False
        self._flight = SingleFlight()

    async def load(self, fetch: Callable[[], Awaitable[Snapshot]]) -> None:
        """Fetch the snapshot unless it was already loaded. Concurrent callers share one fetch."""
        if self.loaded:
            return
        await self._flight.do(SNAPSHOT_KEY, lambda: self._load(fetch))

    async def _load(self, fetch: Callable[[], Awaitable[Snapshot]]) -> None:
        snapshot = await fetch()
        for raw_path, uuid in snapshot.index.items():
            self._paths[clean_path(raw_path)] = uuid
        self.owner = snapshot.owner
        self.loaded = True
        logger.info(f"Loaded path index for '{self.owner}': {len(self._paths)} entries")

    def get(self, key: str) -> Optional[str]:
        return self._paths.get(key)

    def set(self, key: str, uuid: str) -> None:
        self._paths[key] = uuid

    def pop(self, key: str) -> Optional[str]:
        return self._paths.pop(key, None)

    def paths(self) -> List[str]:
        return list(self._paths)

    def has_uuid(self, uuid: str) -> bool:
        return uuid in self._paths.values()

    def children(self, directory: str) -> List[str]:
        """Names of the immediate children of `directory`, de-duplicated, in index order."""
        prefix = "/" if directory == "/" else directory + "/"
        seen: Dict[str, None] = {}
        for path in self._paths:
            if not path.startswith(prefix):
                continue
            rest = path[len(prefix):]
            child = rest.split("/", 1)[0]
            if child:
                seen.setdefault(child, None)
        return list(seen)

    def __contains__(self, key: str) -> bool:
        return key in self._paths

    def __len__(self) -> int:
        return len(self._paths)
