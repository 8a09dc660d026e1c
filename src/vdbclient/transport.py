# Copyright 2025 Sushanth (https://github.com/sushanthpy)
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
HTTP transport.

The collection and client code talk to the server only through
``Transport.send(method, path, body)``. :class:`HttpTransport` is the
requests-based implementation; tests substitute their own.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional
from urllib.parse import quote

import requests

from .errors import DeserializationError, VdbConnectionError, error_from_status
from .settings import ClientSettings

logger = logging.getLogger(__name__)


# ============================================================================
# API Paths
# ============================================================================

class ApiPaths:
    """URL paths of the v2 REST API. Path segments are percent-encoded."""

    BASE = "/api/v2"

    @staticmethod
    def _encode(segment: str) -> str:
        return quote(segment, safe="")

    @classmethod
    def heartbeat(cls) -> str:
        return f"{cls.BASE}/heartbeat"

    @classmethod
    def version(cls) -> str:
        return f"{cls.BASE}/version"

    @classmethod
    def database(cls, tenant: str, database: str) -> str:
        return f"{cls.BASE}/tenants/{cls._encode(tenant)}/databases/{cls._encode(database)}"

    @classmethod
    def collections(cls, tenant: str, database: str) -> str:
        return f"{cls.database(tenant, database)}/collections"

    @classmethod
    def collection(cls, tenant: str, database: str, name_or_id: str) -> str:
        return f"{cls.collections(tenant, database)}/{cls._encode(name_or_id)}"

    @classmethod
    def collections_count(cls, tenant: str, database: str) -> str:
        return f"{cls.database(tenant, database)}/collections_count"

    @classmethod
    def collection_add(cls, tenant: str, database: str, collection_id: str) -> str:
        return f"{cls.collection(tenant, database, collection_id)}/add"

    @classmethod
    def collection_upsert(cls, tenant: str, database: str, collection_id: str) -> str:
        return f"{cls.collection(tenant, database, collection_id)}/upsert"

    @classmethod
    def collection_update(cls, tenant: str, database: str, collection_id: str) -> str:
        return f"{cls.collection(tenant, database, collection_id)}/update"

    @classmethod
    def collection_get(cls, tenant: str, database: str, collection_id: str) -> str:
        return f"{cls.collection(tenant, database, collection_id)}/get"

    @classmethod
    def collection_delete(cls, tenant: str, database: str, collection_id: str) -> str:
        return f"{cls.collection(tenant, database, collection_id)}/delete"

    @classmethod
    def collection_query(cls, tenant: str, database: str, collection_id: str) -> str:
        return f"{cls.collection(tenant, database, collection_id)}/query"

    @classmethod
    def collection_count(cls, tenant: str, database: str, collection_id: str) -> str:
        return f"{cls.collection(tenant, database, collection_id)}/count"


# ============================================================================
# Transport
# ============================================================================

class Transport(ABC):
    """Issues a request and returns the decoded JSON body."""

    @abstractmethod
    def send(self, method: str, path: str, body: Optional[Any] = None) -> Any:
        ...

    def close(self) -> None:
        pass


def _error_message(response: requests.Response) -> tuple:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        message = payload.get("message") or payload.get("error")
        if message:
            return str(message), payload.get("error")
    text = response.text.strip() if response.text else ""
    return text or response.reason or f"HTTP {response.status_code}", None


class HttpTransport(Transport):
    """JSON over HTTP with ``requests``."""

    def __init__(self, settings: ClientSettings, session: Optional[requests.Session] = None):
        self._settings = settings
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json"})
        self._session.headers.update(settings.headers)
        self._session.headers.update(settings.auth_headers())

    def send(self, method: str, path: str, body: Optional[Any] = None) -> Any:
        url = self._settings.base_url + path
        try:
            response = self._session.request(
                method,
                url,
                json=body,
                timeout=self._settings.timeout,
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            raise VdbConnectionError(f"Could not reach {url}: {e}") from e
        logger.debug("%s %s -> %d", method, path, response.status_code)

        if response.status_code >= 400:
            message, error_code = _error_message(response)
            raise error_from_status(response.status_code, message, error_code)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise DeserializationError(
                f"Server returned invalid JSON for {method} {path}",
                status_code=response.status_code if 200 <= response.status_code <= 299 else 200,
            ) from e

    def close(self) -> None:
        self._session.close()
