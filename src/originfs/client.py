"""
Path-based client over the identifier-keyed remote store.

The client keeps three pieces of state for its whole lifetime: the path index
(path -> identifier), the entry cache (identifier -> record) and the mutation
log. Operations change the local view immediately and queue the matching
remote mutations; `commit()` sends the queue as one batch.

Until a commit succeeds the local view is ahead of the remote store. `dirty`
reports whether such unacknowledged mutations exist.
"""
import asyncio
import logging
import time
from typing import Any, List, Optional

import httpx

from .cache import EntryCache
from .config import OriginFSConfig
from .exceptions import InvalidTypeError, NotFoundError
from .ids import generate_id
from .index import PathIndex
from .models import FOLDER_TYPE, FieldIndex, Mutation, Record
from .mutations import MutationLog
from .paths import format_path, join_path, parent_and_leaf, record_to_path, split_name
from .rwlock import AsyncRWLock
from .transport import DEFAULT_BASE_URL, OriginTransport

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class OriginFSClient:

    def __init__(
        self,
        token: str = "",
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        auth_scheme: str = "query",
        transport: Optional[OriginTransport] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.transport = transport or OriginTransport(
            token, base_url=base_url, timeout=timeout, auth_scheme=auth_scheme, client=http_client
        )
        self.index = PathIndex()
        self.entries = EntryCache()
        self.log = MutationLog()
        self._lock = AsyncRWLock()
        self._commit_lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: OriginFSConfig) -> "OriginFSClient":
        return cls(
            token=config.token,
            base_url=config.base_url,
            timeout=config.timeout_sec,
            auth_scheme=config.auth_scheme,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        if self.log:
            logger.warning(f"Closing client with {len(self.log)} uncommitted mutations")
        await self.transport.aclose()

    @property
    def owner(self) -> Optional[str]:
        return self.index.owner

    @property
    def dirty(self) -> bool:
        """True while local changes have not been acknowledged by the remote store."""
        return bool(self.log)

    @property
    def pending(self) -> List[Mutation]:
        return [entry.model_copy(deep=True) for entry in self.log]

    # --- loading -----------------------------------------------------------

    async def load_index(self) -> None:
        await self.index.load(self.transport.fetch_snapshot)

    async def ensure_entry(self, uuid: str) -> Record:
        return await self.entries.ensure(uuid, self.transport.fetch_record)

    async def _resolve(self, path: str) -> str:
        await self.load_index()
        uuid = self.index.get(path.lower())
        if not uuid:
            raise NotFoundError(f"Path not found: {path}", context={"path": path})
        return uuid

    async def _record_for(self, path: str) -> Record:
        return await self.ensure_entry(await self._resolve(path))

    def _new_id(self) -> str:
        return generate_id(
            self.owner or "",
            taken=lambda candidate: candidate in self.entries or self.index.has_uuid(candidate),
        )

    # --- lookups -----------------------------------------------------------

    async def get_id(self, path: str) -> str:
        async with self._lock.read_lock():
            return await self._resolve(path)

    async def get_path(self, uuid: str) -> str:
        async with self._lock.read_lock():
            await self.load_index()
            return record_to_path(await self.ensure_entry(uuid))

    async def list_paths(self) -> List[str]:
        async with self._lock.read_lock():
            await self.load_index()
            return self.index.paths()

    async def read_record(self, path: str) -> Record:
        async with self._lock.read_lock():
            record = await self._record_for(path)
            return record.model_copy(deep=True)

    async def read_content(self, path: str) -> str:
        async with self._lock.read_lock():
            record = await self._record_for(path)
            if not isinstance(record.data, str):
                raise InvalidTypeError(
                    f"Content of {path} is not a string",
                    context={"path": path, "type": record.type},
                )
            return record.data

    async def stat_uuid(self, uuid: str) -> Record:
        async with self._lock.read_lock():
            await self.load_index()
            record = await self.ensure_entry(uuid)
            return record.model_copy(deep=True)

    async def list_dir(self, path: str) -> List[str]:
        directory = path.lower()
        if directory.endswith("/"):
            directory = directory[:-1]
        directory = directory or "/"
        async with self._lock.read_lock():
            await self.load_index()
            return self.index.children(directory)

    async def exists(self, path: str) -> bool:
        """Never raises: any failure, including a failed index load, reads as absent."""
        try:
            async with self._lock.read_lock():
                await self.load_index()
                return path.lower() in self.index
        except Exception as e:
            logger.debug(f"exists({path!r}) treated as False: {e}")
            return False

    @staticmethod
    def join_path(*elements: str) -> str:
        return join_path(*elements)

    # --- mutations ---------------------------------------------------------

    async def write(self, path: str, data: str) -> None:
        """Replace the content of an existing file. Never creates; see create_file."""
        async with self._lock.write_lock():
            uuid = await self._resolve(path)
            record = await self.ensure_entry(uuid)
            now = _now_ms()
            record.data = data
            record.edited = now
            record.size = len(data)
            self.log.update(uuid, FieldIndex.DATA, data)
            self.log.update(uuid, FieldIndex.EDITED, now)
            self.log.update(uuid, FieldIndex.SIZE, len(data))
            logger.debug(f"Wrote {len(data)} chars to {path}")

    async def create_folders(self, directory: str) -> None:
        async with self._lock.write_lock():
            await self.load_index()
            self._create_folders(directory)

    def _create_folders(self, directory: str) -> None:
        if directory.endswith("/"):
            directory = directory[:-1]
        if not directory or directory == "/":
            return

        parts = [part for part in directory.split("/") if part]
        for depth in range(1, len(parts) + 1):
            key = ("/" + "/".join(parts[:depth])).lower()
            if key in self.index:
                continue
            record = self._new_record(
                extension=FOLDER_TYPE,
                name=parts[depth - 1],
                parent="/".join(parts[:depth - 1]),
                data=[],
            )
            self._insert(key, record)

    async def create_file(self, path: str, data: str) -> str:
        """Create a file record, materializing missing parent folders. Returns the new identifier."""
        path = path.lower()
        async with self._lock.write_lock():
            await self.load_index()
            parent, leaf = parent_and_leaf(path)
            name, extension = split_name(leaf)
            self._create_folders(parent)
            record = self._new_record(extension=extension, name=name, parent=parent, data=data)
            self._insert(path, record)
            return record.uuid

    async def create_folder(self, path: str) -> str:
        path = path.lower()
        async with self._lock.write_lock():
            await self.load_index()
            parent, leaf = parent_and_leaf(path)
            name, _ = split_name(leaf)
            self._create_folders(parent)
            record = self._new_record(extension=FOLDER_TYPE, name=name, parent=parent, data=[])
            self._insert(path, record)
            return record.uuid

    def _new_record(self, extension: str, name: str, parent: str, data: Any) -> Record:
        now = _now_ms()
        return Record(
            type=extension,
            name=name,
            location=format_path(self.owner or "", parent),
            data=data,
            created=now,
            edited=now,
            size=len(data) if isinstance(data, str) else 0,
            uuid=self._new_id(),
        )

    def _insert(self, key: str, record: Record) -> None:
        replaced = self.index.get(key)
        if replaced:
            logger.warning(f"{key} already mapped to {replaced}; remapping to new record {record.uuid}")
        self.entries.put(record)
        self.index.set(key, record.uuid)
        self.log.add(record)
        logger.debug(f"Created {key} as {record.uuid}")

    async def rename(self, old_path: str, new_path: str) -> None:
        async with self._lock.write_lock():
            uuid = await self._resolve(old_path)
            record = await self.ensure_entry(uuid)
            parent, leaf = parent_and_leaf(new_path)
            name, extension = split_name(leaf)
            now = _now_ms()

            record.type = extension
            record.name = name
            record.location = format_path(self.owner or "", parent)
            record.edited = now
            replaced = self.index.get(new_path.lower())
            if replaced and replaced != uuid:
                logger.warning(f"{new_path.lower()} already mapped to {replaced}; remapping to renamed record {uuid}")
            self.index.pop(old_path.lower())
            self.index.set(new_path.lower(), uuid)
            self.log.update(uuid, FieldIndex.TYPE, extension)
            self.log.update(uuid, FieldIndex.NAME, name)
            self.log.update(uuid, FieldIndex.LOCATION, record.location)
            self.log.update(uuid, FieldIndex.EDITED, now)
            logger.debug(f"Renamed {old_path} -> {new_path}")

    async def remove(self, path: str) -> None:
        async with self._lock.write_lock():
            uuid = await self._resolve(path)
            self.index.pop(path.lower())
            self.entries.pop(uuid)
            self.log.delete(uuid)
            logger.debug(f"Removed {path} ({uuid})")

    # --- commit ------------------------------------------------------------

    async def commit(self) -> int:
        """
        Send every pending mutation as a single batch.

        Returns the number of mutations acknowledged. On failure the log is
        left exactly as it was and the RemoteError propagates; call again to retry.
        Mutations queued while the request is in flight wait for the next commit.
        """
        async with self._commit_lock:
            batch = self.log.snapshot()
            if not batch:
                return 0
            await self.transport.send_batch(MutationLog.encode(batch))
            self.log.acknowledge(len(batch))
            logger.info(f"Committed {len(batch)} mutations")
            return len(batch)
