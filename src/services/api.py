"""
src/services/api.py — persistence collaborators for the record collections.

Both backends speak the same narrow contract, addressed by collection name:

    list(collection)                -> [record, ...]
    get(collection, id)             -> record           (NotFoundError if absent)
    create(collection, data)        -> record           (backend assigns id + createdAt)
    update(collection, id, partial) -> record
    delete(collection, id)          -> None
    find(collection, field, value)  -> [record, ...]    (equality match)

RestBackend talks JSON over HTTP (httpx) to the document-store server.
InMemoryBackend keeps everything in dicts, for offline use and tests.
"""


import copy
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from uuid import uuid4

import httpx
from loguru import logger

from config import API_URL, REQUEST_TIMEOUT
from context.models import utc_now_iso
from exceptions import NotFoundError, TransportError


Record = Dict[str, Any]


class Backend(ABC):
    """Shared helpers; subclasses implement the five primitive calls."""

    @abstractmethod
    def list(self, collection: str) -> List[Record]:
        raise NotImplementedError

    @abstractmethod
    def get(self, collection: str, record_id: Any) -> Record:
        raise NotImplementedError

    @abstractmethod
    def create(self, collection: str, data: Record) -> Record:
        raise NotImplementedError

    @abstractmethod
    def update(self, collection: str, record_id: Any, data: Record) -> Record:
        raise NotImplementedError

    @abstractmethod
    def delete(self, collection: str, record_id: Any) -> None:
        raise NotImplementedError

    def find(self, collection: str, field: str, value: Any) -> List[Record]:

        return [r for r in self.list(collection) if r.get(field) == value]


# --- In-memory -----------------------------------------------------------------
class InMemoryBackend(Backend):

    def __init__(self, seed: Optional[Dict[str, List[Record]]] = None):

        self._collections: Dict[str, Dict[str, Record]] = {}

        for name, records in (seed or {}).items():
            bucket = self._collections.setdefault(name, {})
            for r in records:
                rec = dict(r)
                rec.setdefault("id", str(uuid4()))
                rec.setdefault("createdAt", utc_now_iso())
                bucket[str(rec["id"])] = rec

    def _bucket(self, collection: str) -> Dict[str, Record]:

        return self._collections.setdefault(collection, {})

    def list(self, collection: str) -> List[Record]:

        return [copy.deepcopy(r) for r in self._bucket(collection).values()]

    def get(self, collection: str, record_id: Any) -> Record:

        rec = self._bucket(collection).get(str(record_id))

        if rec is None:
            raise NotFoundError(f"{collection} record '{record_id}' not found")

        return copy.deepcopy(rec)

    def create(self, collection: str, data: Record) -> Record:

        rec = {**copy.deepcopy(data), "id": str(uuid4()), "createdAt": utc_now_iso()}
        self._bucket(collection)[rec["id"]] = rec

        return copy.deepcopy(rec)

    def update(self, collection: str, record_id: Any, data: Record) -> Record:

        bucket = self._bucket(collection)
        key = str(record_id)

        if key not in bucket:
            raise NotFoundError(f"{collection} record '{record_id}' not found")

        patch = {k: v for k, v in copy.deepcopy(data).items() if k != "id"}
        bucket[key].update(patch)

        return copy.deepcopy(bucket[key])

    def delete(self, collection: str, record_id: Any) -> None:

        if self._bucket(collection).pop(str(record_id), None) is None:
            raise NotFoundError(f"{collection} record '{record_id}' not found")


# --- REST ----------------------------------------------------------------------
class RestBackend(Backend):
    """
    JSON client for the document-store server.

    The server reports every failure as HTTP 500 with {"error": "..."}; only 404
    is mapped to NotFoundError, everything else becomes TransportError carrying
    the server's message.
    """

    def __init__(
            self,
            base_url: Optional[str] = None,
            *,
            timeout: float = REQUEST_TIMEOUT,
            token: Optional[str] = None,
            transport: Optional[httpx.BaseTransport] = None,
    ):

        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self.client = httpx.Client(
            base_url=(base_url or API_URL or "http://localhost:3000/api").rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:

        self.client.close()

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:

        logger.debug("{} {}", method, path)

        try:
            resp = self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error("Request {} {} failed: {}", method, path, e)
            raise TransportError(f"Could not reach data service: {e}") from e

        if resp.status_code == 404:
            raise NotFoundError(_error_message(resp) or f"{path} not found")
        if resp.is_error:
            message = _error_message(resp) or f"HTTP {resp.status_code}"
            logger.error("Request {} {} returned {}: {}", method, path, resp.status_code, message)
            raise TransportError(message)

        return resp

    def list(self, collection: str) -> List[Record]:

        return self._request("GET", f"/{collection}").json()

    def get(self, collection: str, record_id: Any) -> Record:

        return self._request("GET", f"/{collection}/{record_id}").json()

    def create(self, collection: str, data: Record) -> Record:

        return self._request("POST", f"/{collection}", json=data).json()

    def update(self, collection: str, record_id: Any, data: Record) -> Record:

        return self._request("PATCH", f"/{collection}/{record_id}", json=data).json()

    def delete(self, collection: str, record_id: Any) -> None:

        self._request("DELETE", f"/{collection}/{record_id}")


def _error_message(resp: httpx.Response) -> Optional[str]:

    try:
        body = resp.json()
    except ValueError:
        return resp.text or None

    if isinstance(body, dict):
        return body.get("error") or body.get("detail")

    return None
