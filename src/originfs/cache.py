"""
Entry cache: record identifier -> full record.

Records are fetched on first use and kept for the life of the client; there is
no expiry. All reads and edits go through the cached copy.
"""
import logging
from typing import Awaitable, Callable, Dict, Optional

from .models import Record
from .singleflight import SingleFlight

logger = logging.getLogger(__name__)


class EntryCache:

    def __init__(self):
        self._records: Dict[str, Record] = {}
        self._flight = SingleFlight()

    async def ensure(self, uuid: str, fetch: Callable[[str], Awaitable[Record]]) -> Record:
        record = self._records.get(uuid)
        if record is not None:
            return record
        return await self._flight.do(uuid, lambda: self._fetch(uuid, fetch))

    async def _fetch(self, uuid: str, fetch: Callable[[str], Awaitable[Record]]) -> Record:
        record = await fetch(uuid)
        if record.uuid != uuid:
            logger.warning(f"Record fetched for {uuid} carries identifier {record.uuid!r}; keying by {uuid}")
            record.uuid = uuid
        self._records[uuid] = record
        return record

    def get(self, uuid: str) -> Optional[Record]:
        return self._records.get(uuid)

    def put(self, record: Record) -> None:
        if not record.uuid:
            raise ValueError("Cannot cache a record without an identifier")
        self._records[record.uuid] = record

    def pop(self, uuid: str) -> Optional[Record]:
        return self._records.pop(uuid, None)

    def __contains__(self, uuid: str) -> bool:
        return uuid in self._records

    def __len__(self) -> int:
        return len(self._records)
