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
vdbclient Client

Entry point for talking to a vector database server: heartbeat and
version probes plus collection lifecycle (create, get, list, delete).

Example:
    with Client(ClientSettings(base_url="http://localhost:8000")) as client:
        collection = client.get_or_create_collection(
            "docs",
            configuration=CollectionConfiguration(space="cosine", hnsw_m=16),
        )
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional
from urllib.parse import urlencode

from .collection import Collection, effective_embedding_function_spec
from .configuration import CollectionConfiguration
from .embedding_spec import EmbeddingFunctionSpec
from .embeddings.base import EmbeddingFunction
from .errors import DeserializationError, ValidationError
from .resolver import canonical_provider_name, resolve
from .schema import Schema
from .settings import ClientSettings
from .transport import ApiPaths, HttpTransport, Transport
from .validators import require_non_blank
from .wire import to_configuration_map, to_schema_map

logger = logging.getLogger(__name__)


# ============================================================================
# Embedding Function Conflicts
# ============================================================================

def _conflicts(embedding_function: EmbeddingFunction, spec: EmbeddingFunctionSpec) -> bool:
    # "default" is what callers get without asking; it never conflicts
    runtime = canonical_provider_name(embedding_function.name())
    return runtime != "default" and runtime != canonical_provider_name(spec.name)


def validate_embedding_function_conflict_on_create(
    embedding_function: Optional[EmbeddingFunction],
    configuration_spec: Optional[EmbeddingFunctionSpec],
) -> None:
    """Reject an explicit embedder that disagrees with the configured descriptor."""
    if embedding_function is None or configuration_spec is None:
        return
    if _conflicts(embedding_function, configuration_spec):
        raise ValidationError(
            "Multiple embedding functions provided. Please provide only one. "
            f"Embedding function conflict: {embedding_function.name()} vs {configuration_spec.name}"
        )


def validate_embedding_function_conflict_on_get(
    embedding_function: Optional[EmbeddingFunction],
    persisted_spec: Optional[EmbeddingFunctionSpec],
) -> None:
    """Reject an explicit embedder that disagrees with the persisted descriptor."""
    if embedding_function is None or persisted_spec is None:
        return
    if _conflicts(embedding_function, persisted_spec):
        raise ValidationError(
            "An embedding function already exists in the collection configuration, "
            "and a new one is provided. If this is intentional, please embed documents "
            "separately. Embedding function conflict: "
            f"new: {embedding_function.name()} vs persisted: {persisted_spec.name}"
        )


# ============================================================================
# Client
# ============================================================================

class Client:
    """
    Client for a single tenant/database.

    Args:
        settings: Connection settings (defaults to ClientSettings.from_env())
        transport: Custom transport; defaults to HttpTransport(settings)
        resolver: Builds embedders from descriptors (defaults to resolver.resolve
            bound to the settings timeout)
    """

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        transport: Optional[Transport] = None,
        resolver: Optional[Callable[[Optional[EmbeddingFunctionSpec]], Optional[EmbeddingFunction]]] = None,
    ):
        self._settings = settings or ClientSettings.from_env()
        self._transport = transport or HttpTransport(self._settings)
        if resolver is None:
            resolver = functools.partial(resolve, timeout=self._settings.timeout)
        self._resolver = resolver

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    @property
    def tenant(self) -> str:
        return self._settings.tenant

    @property
    def database(self) -> str:
        return self._settings.database

    def close(self) -> None:
        self._transport.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------

    def heartbeat(self) -> int:
        """Server heartbeat in nanoseconds."""
        response = self._transport.send("GET", ApiPaths.heartbeat())
        if not isinstance(response, dict) or "nanosecond heartbeat" not in response:
            raise DeserializationError(f"Server returned invalid heartbeat: {response!r}")
        return int(response["nanosecond heartbeat"])

    def version(self) -> str:
        response = self._transport.send("GET", ApiPaths.version())
        if not isinstance(response, str):
            raise DeserializationError(f"Server returned invalid version: {response!r}")
        return response

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def _from_response(self, payload: Any, embedding_function: Optional[EmbeddingFunction]) -> Collection:
        return Collection.from_response(
            payload,
            self._transport,
            self.tenant,
            self.database,
            embedding_function=embedding_function,
            resolver=self._resolver,
        )

    def create_collection(
        self,
        name: str,
        configuration: Optional[CollectionConfiguration] = None,
        metadata: Optional[Mapping[str, Any]] = None,
        schema: Optional[Schema] = None,
        embedding_function: Optional[EmbeddingFunction] = None,
        get_or_create: bool = False,
    ) -> Collection:
        """
        Create a collection.

        When ``embedding_function`` is given and the configuration carries
        no descriptor, one is derived from it so the server persists the
        binding. A given embedder that disagrees with the configured
        descriptor is rejected.
        """
        name = require_non_blank("name", name)
        if embedding_function is not None:
            configured = effective_embedding_function_spec(configuration, schema)
            validate_embedding_function_conflict_on_create(embedding_function, configured)
            if configured is None:
                configuration = (configuration or CollectionConfiguration()).with_changes(
                    embedding_function=EmbeddingFunctionSpec.from_embedding_function(embedding_function)
                )

        body: Dict[str, Any] = {"name": name, "get_or_create": get_or_create}
        config_map = to_configuration_map(configuration)
        if config_map is not None:
            body["configuration"] = config_map
        if metadata is not None:
            body["metadata"] = dict(metadata)
        if schema is not None:
            body["schema"] = to_schema_map(schema)

        payload = self._transport.send("POST", ApiPaths.collections(self.tenant, self.database), body)
        collection = self._from_response(payload, embedding_function)
        if get_or_create:
            validate_embedding_function_conflict_on_get(
                embedding_function, collection.embedding_function_spec
            )
        return collection

    def get_or_create_collection(
        self,
        name: str,
        configuration: Optional[CollectionConfiguration] = None,
        metadata: Optional[Mapping[str, Any]] = None,
        schema: Optional[Schema] = None,
        embedding_function: Optional[EmbeddingFunction] = None,
    ) -> Collection:
        return self.create_collection(
            name,
            configuration=configuration,
            metadata=metadata,
            schema=schema,
            embedding_function=embedding_function,
            get_or_create=True,
        )

    def get_collection(
        self,
        name: str,
        embedding_function: Optional[EmbeddingFunction] = None,
    ) -> Collection:
        name = require_non_blank("name", name)
        payload = self._transport.send("GET", ApiPaths.collection(self.tenant, self.database, name))
        collection = self._from_response(payload, embedding_function)
        validate_embedding_function_conflict_on_get(
            embedding_function, collection.embedding_function_spec
        )
        return collection

    def list_collections(self, limit: Optional[int] = None, offset: Optional[int] = None) -> List[Collection]:
        params: Dict[str, int] = {}
        if limit is not None:
            if limit <= 0:
                raise ValidationError(f"limit must be positive, got {limit}")
            params["limit"] = limit
        if offset is not None:
            if offset < 0:
                raise ValidationError(f"offset must be >= 0, got {offset}")
            params["offset"] = offset
        path = ApiPaths.collections(self.tenant, self.database)
        if params:
            path = f"{path}?{urlencode(params)}"
        response = self._transport.send("GET", path)
        if not isinstance(response, list):
            raise DeserializationError("Server returned invalid collection list: expected an array")
        return [self._from_response(item, None) for item in response]

    def count_collections(self) -> int:
        response = self._transport.send("GET", ApiPaths.collections_count(self.tenant, self.database))
        if isinstance(response, bool) or not isinstance(response, int):
            raise DeserializationError(f"Server returned invalid collection count: {response!r}")
        return response

    def delete_collection(self, name: str) -> None:
        name = require_non_blank("name", name)
        self._transport.send("DELETE", ApiPaths.collection(self.tenant, self.database, name))
        logger.debug("Deleted collection %s", name)
