"""
HTTP exchanges with the remote store.

Only three requests exist: the path-index snapshot, a single record by
identifier and the batched mutation commit. Every failure surfaces as
RemoteError (or NotFoundError for a missing record).
"""
import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from .exceptions import NotFoundError, RemoteError
from .models import Record, Snapshot

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.rotur.dev"

SNAPSHOT_PATH = "/files/path-index"
RECORD_PATH = "/files/by-uuid"
BATCH_PATH = "/files"


class OriginTransport:

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        auth_scheme: str = "query",
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            token: Opaque credential of the authenticated owner.
            base_url: Root URL of the remote store.
            timeout: Request timeout in seconds (ignored when `client` is given).
            auth_scheme: "query" sends the token as the `auth` query parameter,
                "bearer" as an Authorization header.
            client: Pre-built HTTP client; the transport does not close it.
        """
        if auth_scheme not in ("query", "bearer"):
            raise ValueError(f"Unknown auth scheme '{auth_scheme}'")
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.auth_scheme = auth_scheme
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)

    def _auth(self) -> Dict[str, Any]:
        if self.auth_scheme == "bearer":
            return {"headers": {"Authorization": f"Bearer {self.token}"}, "params": {}}
        return {"headers": {}, "params": {"auth": self.token}}

    async def _request(self, method: str, path: str, params: Optional[Dict[str, str]] = None, payload: Any = None) -> Any:
        auth = self._auth()
        query = dict(auth["params"])
        query.update(params or {})
        kwargs: Dict[str, Any] = {"params": query, "headers": auth["headers"]}
        if payload is not None:
            kwargs["json"] = payload

        try:
            response = await self.client.request(method, f"{self.base_url}{path}", **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e!r}")
            raise RemoteError(f"{method} {path} failed: {e}") from e

        body = response.text
        if response.status_code == 404 and path == RECORD_PATH:
            raise NotFoundError(f"No record {query.get('uuid')}", context={"status": 404, "body": body})
        if response.status_code != 200:
            logger.error(f"HTTP error on {method} {path}: {response.status_code} - {body}")
            raise RemoteError(f"HTTP {response.status_code}: {body}", remote_status=response.status_code, body=body)

        if not body.strip():
            return {}
        try:
            data = json.loads(body)
        except ValueError as e:
            raise RemoteError(f"HTTP {response.status_code}: invalid JSON body", remote_status=response.status_code, body=body) from e

        if isinstance(data, dict) and data.get("error"):
            logger.error(f"Remote store rejected {method} {path}: {data['error']}")
            raise RemoteError(str(data["error"]), remote_status=response.status_code, body=body)
        return data

    async def fetch_snapshot(self) -> Snapshot:
        data = await self._request("GET", SNAPSHOT_PATH)
        if not isinstance(data, dict):
            raise RemoteError("Path index response is not an object", remote_status=200, body=json.dumps(data))
        return Snapshot.from_payload(data)

    async def fetch_record(self, uuid: str) -> Record:
        data = await self._request("GET", RECORD_PATH, params={"uuid": uuid})
        if data is None or data == {}:
            raise NotFoundError(f"No record {uuid}")
        if not isinstance(data, list):
            raise RemoteError(f"Record {uuid} is not an array", remote_status=200, body=json.dumps(data))
        logger.debug(f"Fetched record {uuid}")
        return Record.from_wire(data)

    async def send_batch(self, updates: List[Dict[str, Any]]) -> Any:
        logger.info(f"Committing batch of {len(updates)} mutations")
        return await self._request("POST", BATCH_PATH, payload={"updates": updates})

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
