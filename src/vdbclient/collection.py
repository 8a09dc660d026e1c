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
Collection Handle

A Collection holds the client-side view of a server collection: its
configuration, schema, metadata and the embedding function used for
text queries. That view is published as one immutable snapshot, so
readers never see a half-applied update. Read-modify-write sequences
(configuration merges, metadata merges, lazy embedder resolution) run
under a single per-collection lock.

Example:
    collection = client.get_collection("docs")
    collection.modify_configuration(UpdateCollectionConfiguration(hnsw_search_ef=128))
    results = collection.query(query_texts=["what is hnsw?"], n_results=5)
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import numpy as np

from .configuration import CollectionConfiguration, UpdateCollectionConfiguration
from .embedding_spec import EmbeddingFunctionSpec
from .embeddings.base import EmbeddingFunction
from .errors import DeserializationError, ResolutionError, ValidationError
from .resolver import resolve
from .schema import Schema
from .transport import ApiPaths, Transport
from .wire import parse_configuration, parse_schema, to_update_configuration_map

logger = logging.getLogger(__name__)


def effective_embedding_function_spec(
    configuration: Optional[CollectionConfiguration],
    schema: Optional[Schema],
) -> Optional[EmbeddingFunctionSpec]:
    """
    Descriptor used for text embedding.

    Precedence: the configuration's own descriptor, then the
    collection schema's ``#embedding`` descriptor, then the descriptor
    inside the configuration's schema.
    """
    if configuration is not None and configuration.embedding_function is not None:
        return configuration.embedding_function
    if schema is not None:
        spec = schema.get_default_embedding_function_spec()
        if spec is not None:
            return spec
    if configuration is not None and configuration.schema is not None:
        return configuration.schema.get_default_embedding_function_spec()
    return None


@dataclass(frozen=True)
class CollectionState:
    """Immutable snapshot of a collection's client-side state."""

    name: str
    metadata: Optional[Mapping[str, Any]] = None
    configuration: Optional[CollectionConfiguration] = None
    schema: Optional[Schema] = None
    embedding_function_spec: Optional[EmbeddingFunctionSpec] = None


# ============================================================================
# Query Results
# ============================================================================

@dataclass
class QueryResult:
    """Per-query result lists, as returned by the server."""

    ids: List[List[str]]
    distances: Optional[List[List[float]]] = None
    documents: Optional[List[List[Optional[str]]]] = None
    metadatas: Optional[List[List[Optional[Dict[str, Any]]]]] = None
    embeddings: Optional[List[List[List[float]]]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QueryResult":
        if not isinstance(data, dict) or not isinstance(data.get("ids"), list):
            raise DeserializationError("Server returned invalid query result: missing ids")
        return cls(
            ids=data["ids"],
            distances=data.get("distances"),
            documents=data.get("documents"),
            metadatas=data.get("metadatas"),
            embeddings=data.get("embeddings"),
        )


@dataclass
class GetResult:
    """Records fetched by id or filter; one entry per record."""

    ids: List[str]
    documents: Optional[List[Optional[str]]] = None
    metadatas: Optional[List[Optional[Dict[str, Any]]]] = None
    embeddings: Optional[List[List[float]]] = None
    uris: Optional[List[Optional[str]]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GetResult":
        if not isinstance(data, dict) or not isinstance(data.get("ids"), list):
            raise DeserializationError("Server returned invalid get result: missing ids")
        return cls(
            ids=data["ids"],
            documents=data.get("documents"),
            metadatas=data.get("metadatas"),
            embeddings=data.get("embeddings"),
            uris=data.get("uris"),
        )


def _embeddings_to_lists(embeddings: Sequence[Any]) -> List[List[float]]:
    return [np.asarray(vector, dtype=np.float32).tolist() for vector in embeddings]


def _check_lengths(ids: List[str], **columns: Optional[Sequence[Any]]) -> None:
    for label, values in columns.items():
        if values is not None and len(values) != len(ids):
            raise ValidationError(f"Number of {label} ({len(values)}) must match number of ids ({len(ids)})")


def _require_non_blank_field(field_name: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise DeserializationError(
            f"Server returned invalid collection payload: {field_name} must be a non-blank string"
        )
    return value


# ============================================================================
# Collection
# ============================================================================

class Collection:
    """Handle on a server collection."""

    def __init__(
        self,
        transport: Transport,
        id: str,
        name: str,
        tenant: str,
        database: str,
        metadata: Optional[Mapping[str, Any]] = None,
        dimension: Optional[int] = None,
        configuration: Optional[CollectionConfiguration] = None,
        schema: Optional[Schema] = None,
        embedding_function: Optional[EmbeddingFunction] = None,
        resolver: Callable[[Optional[EmbeddingFunctionSpec]], Optional[EmbeddingFunction]] = resolve,
    ):
        self._transport = transport
        self._id = id
        self._tenant = tenant
        self._database = database
        self._dimension = dimension
        self._resolver = resolver
        self._lock = threading.Lock()

        if schema is None and configuration is not None:
            schema = configuration.schema
        self._state = CollectionState(
            name=name,
            metadata=MappingProxyType(dict(metadata)) if metadata is not None else None,
            configuration=configuration,
            schema=schema,
            embedding_function_spec=effective_embedding_function_spec(configuration, schema),
        )
        # An explicit embedder always wins over the persisted descriptor
        self._explicit_embedding_function = embedding_function
        self._embedding_function = embedding_function

    @classmethod
    def from_response(
        cls,
        payload: Mapping[str, Any],
        transport: Transport,
        tenant: str,
        database: str,
        embedding_function: Optional[EmbeddingFunction] = None,
        resolver: Callable[[Optional[EmbeddingFunctionSpec]], Optional[EmbeddingFunction]] = resolve,
    ) -> "Collection":
        """Build a handle from a server collection payload."""
        if not payload:
            raise DeserializationError("Server returned an empty collection payload")
        if not isinstance(payload, Mapping):
            raise DeserializationError("Server returned invalid collection payload: expected an object")
        raw_config = payload.get("configuration_json", payload.get("configuration"))
        return cls(
            transport=transport,
            id=_require_non_blank_field("collection.id", payload.get("id")),
            name=_require_non_blank_field("collection.name", payload.get("name")),
            tenant=payload.get("tenant") or tenant,
            database=payload.get("database") or database,
            metadata=payload.get("metadata"),
            dimension=payload.get("dimension"),
            configuration=parse_configuration(raw_config),
            schema=parse_schema(payload.get("schema")),
            embedding_function=embedding_function,
            resolver=resolver,
        )

    # ------------------------------------------------------------------
    # Snapshot accessors (lock-free)
    # ------------------------------------------------------------------

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._state.name

    @property
    def tenant(self) -> str:
        return self._tenant

    @property
    def database(self) -> str:
        return self._database

    @property
    def dimension(self) -> Optional[int]:
        return self._dimension

    @property
    def metadata(self) -> Optional[Mapping[str, Any]]:
        return self._state.metadata

    @property
    def configuration(self) -> Optional[CollectionConfiguration]:
        return self._state.configuration

    @property
    def schema(self) -> Optional[Schema]:
        return self._state.schema

    @property
    def embedding_function_spec(self) -> Optional[EmbeddingFunctionSpec]:
        return self._state.embedding_function_spec

    def snapshot(self) -> CollectionState:
        return self._state

    def _path(self) -> str:
        return ApiPaths.collection(self._tenant, self._database, self._id)

    # ------------------------------------------------------------------
    # Modification
    # ------------------------------------------------------------------

    def modify_name(self, name: str) -> None:
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("name must not be blank")
        name = name.strip()
        self._transport.send("PUT", self._path(), {"new_name": name})
        with self._lock:
            self._state = replace(self._state, name=name)

    def modify_metadata(self, metadata: Mapping[str, Any]) -> None:
        if metadata is None:
            raise ValidationError("metadata must not be None")
        self._transport.send("PUT", self._path(), {"new_metadata": dict(metadata)})
        self.merge_metadata(metadata)

    def merge_metadata(self, update: Mapping[str, Any]) -> None:
        with self._lock:
            merged: Dict[str, Any] = dict(self._state.metadata or {})
            merged.update(update)
            self._state = replace(self._state, metadata=MappingProxyType(merged))

    def modify_configuration(self, update: UpdateCollectionConfiguration) -> None:
        """Send a partial configuration update, then merge it locally."""
        if not isinstance(update, UpdateCollectionConfiguration):
            raise ValidationError("update must be an UpdateCollectionConfiguration")
        payload = to_update_configuration_map(update)
        self._transport.send("PUT", self._path(), {"new_configuration": payload})
        self.merge_configuration(update)

    def merge_configuration(self, update: UpdateCollectionConfiguration) -> CollectionConfiguration:
        """
        Apply a server-confirmed partial update to the local configuration.

        Every field of the current configuration is carried forward, the
        update's fields overwrite their counterparts, and the result is
        revalidated. The cached embedder is dropped only when the
        effective descriptor changes.
        """
        with self._lock:
            state = self._state
            seeded = state.configuration.fields() if state.configuration is not None else {}
            seeded.update(update.fields())
            merged = CollectionConfiguration(**seeded)

            schema = state.schema
            if schema is None and merged.schema is not None:
                schema = merged.schema

            spec = effective_embedding_function_spec(merged, state.schema)
            if spec != state.embedding_function_spec and self._explicit_embedding_function is None:
                if self._embedding_function is not None:
                    logger.debug(
                        "Embedding function of collection %s changed to %r; dropping cached embedder",
                        self._id, spec,
                    )
                self._embedding_function = None

            self._state = replace(
                state,
                configuration=merged,
                schema=schema,
                embedding_function_spec=spec,
            )
            return merged

    # ------------------------------------------------------------------
    # Embedding
    # ------------------------------------------------------------------

    def embedding_function(self) -> Optional[EmbeddingFunction]:
        """The embedder for text operations, resolved on first use."""
        with self._lock:
            if self._embedding_function is None:
                spec = self._state.embedding_function_spec
                if spec is None:
                    return None
                self._embedding_function = self._resolver(spec)
            return self._embedding_function

    def _require_embedding_function(self) -> EmbeddingFunction:
        embedder = self.embedding_function()
        if embedder is None:
            raise ResolutionError(
                f"Collection '{self.name}' has no embedding function configured. "
                "Use query_embeddings(...) or pass an embedding_function."
            )
        return embedder

    def embed_query_texts(self, texts: Sequence[str]) -> List[np.ndarray]:
        return self._require_embedding_function().embed_query(list(texts))

    def embed_documents(self, documents: Sequence[str]) -> List[np.ndarray]:
        return self._require_embedding_function()(list(documents))

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def _write_body(
        self,
        ids: Sequence[str],
        embeddings: Optional[Sequence[Any]],
        documents: Optional[Sequence[str]],
        metadatas: Optional[Sequence[Optional[Dict[str, Any]]]],
        uris: Optional[Sequence[str]],
        embed_missing: bool,
    ) -> Dict[str, Any]:
        ids = list(ids)
        if not ids:
            raise ValidationError("ids must not be empty")
        if embeddings is None and embed_missing:
            if documents is None:
                raise ValidationError("Either embeddings or documents must be provided")
            embeddings = self.embed_documents(documents)
        _check_lengths(ids, embeddings=embeddings, documents=documents, metadatas=metadatas, uris=uris)

        body: Dict[str, Any] = {"ids": ids}
        if embeddings is not None:
            body["embeddings"] = _embeddings_to_lists(embeddings)
        if documents is not None:
            body["documents"] = list(documents)
        if metadatas is not None:
            body["metadatas"] = list(metadatas)
        if uris is not None:
            body["uris"] = list(uris)
        return body

    def add(
        self,
        ids: Sequence[str],
        embeddings: Optional[Sequence[Any]] = None,
        documents: Optional[Sequence[str]] = None,
        metadatas: Optional[Sequence[Optional[Dict[str, Any]]]] = None,
        uris: Optional[Sequence[str]] = None,
    ) -> None:
        body = self._write_body(ids, embeddings, documents, metadatas, uris, embed_missing=True)
        self._transport.send("POST", ApiPaths.collection_add(self._tenant, self._database, self._id), body)

    def upsert(
        self,
        ids: Sequence[str],
        embeddings: Optional[Sequence[Any]] = None,
        documents: Optional[Sequence[str]] = None,
        metadatas: Optional[Sequence[Optional[Dict[str, Any]]]] = None,
        uris: Optional[Sequence[str]] = None,
    ) -> None:
        """Insert new records and overwrite existing ones with the same ids."""
        body = self._write_body(ids, embeddings, documents, metadatas, uris, embed_missing=True)
        self._transport.send("POST", ApiPaths.collection_upsert(self._tenant, self._database, self._id), body)

    def update(
        self,
        ids: Sequence[str],
        embeddings: Optional[Sequence[Any]] = None,
        documents: Optional[Sequence[str]] = None,
        metadatas: Optional[Sequence[Optional[Dict[str, Any]]]] = None,
    ) -> None:
        """
        Update existing records in place.

        Only the columns given are sent. Documents are not re-embedded;
        pass ``embeddings`` alongside them to refresh the vectors.
        """
        body = self._write_body(ids, embeddings, documents, metadatas, None, embed_missing=False)
        self._transport.send("POST", ApiPaths.collection_update(self._tenant, self._database, self._id), body)

    def get(
        self,
        ids: Optional[Sequence[str]] = None,
        where: Optional[Dict[str, Any]] = None,
        where_document: Optional[Dict[str, Any]] = None,
        include: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> GetResult:
        """Fetch records by id and/or filter; no criteria returns every record."""
        if limit is not None and (isinstance(limit, bool) or not isinstance(limit, int) or limit < 0):
            raise ValidationError(f"limit must be >= 0, got {limit!r}")
        if offset is not None and (isinstance(offset, bool) or not isinstance(offset, int) or offset < 0):
            raise ValidationError(f"offset must be >= 0, got {offset!r}")

        body: Dict[str, Any] = {}
        if ids is not None:
            body["ids"] = list(ids)
        if where is not None:
            body["where"] = where
        if where_document is not None:
            body["where_document"] = where_document
        if include is not None:
            body["include"] = list(include)
        if limit is not None:
            body["limit"] = limit
        if offset is not None:
            body["offset"] = offset
        response = self._transport.send(
            "POST", ApiPaths.collection_get(self._tenant, self._database, self._id), body
        )
        return GetResult.from_dict(response)

    def delete(
        self,
        ids: Optional[Sequence[str]] = None,
        where: Optional[Dict[str, Any]] = None,
        where_document: Optional[Dict[str, Any]] = None,
    ) -> None:
        if not ids and where is None and where_document is None:
            raise ValidationError("delete requires at least one criterion: ids, where, or where_document")
        body: Dict[str, Any] = {}
        if ids:
            body["ids"] = list(ids)
        if where is not None:
            body["where"] = where
        if where_document is not None:
            body["where_document"] = where_document
        self._transport.send("POST", ApiPaths.collection_delete(self._tenant, self._database, self._id), body)

    def query(
        self,
        query_texts: Optional[Sequence[str]] = None,
        query_embeddings: Optional[Sequence[Any]] = None,
        n_results: int = 10,
        where: Optional[Dict[str, Any]] = None,
        where_document: Optional[Dict[str, Any]] = None,
        include: Optional[Sequence[str]] = None,
    ) -> QueryResult:
        """
        Nearest-neighbor query by text or by embedding.

        Exactly one of ``query_texts`` and ``query_embeddings`` must be
        given. Texts are embedded with the collection's embedding
        function, resolved from its descriptor on first use.
        """
        if (query_texts is None) == (query_embeddings is None):
            raise ValidationError("Provide exactly one of query_texts or query_embeddings")
        if n_results <= 0:
            raise ValidationError(f"n_results must be positive, got {n_results}")
        if query_texts is not None:
            if not query_texts:
                raise ValidationError("query_texts must not be empty")
            query_embeddings = self.embed_query_texts(query_texts)

        body: Dict[str, Any] = {
            "query_embeddings": _embeddings_to_lists(query_embeddings),
            "n_results": n_results,
        }
        if where is not None:
            body["where"] = where
        if where_document is not None:
            body["where_document"] = where_document
        if include is not None:
            body["include"] = list(include)
        response = self._transport.send(
            "POST", ApiPaths.collection_query(self._tenant, self._database, self._id), body
        )
        return QueryResult.from_dict(response)

    def count(self) -> int:
        response = self._transport.send(
            "GET", ApiPaths.collection_count(self._tenant, self._database, self._id)
        )
        if isinstance(response, bool) or not isinstance(response, int):
            raise DeserializationError(f"Server returned invalid collection count: {response!r}")
        return response

    def __repr__(self) -> str:
        state = self._state
        return (
            f"Collection(id={self._id!r}, name={state.name!r}, "
            f"embedding_function={state.embedding_function_spec!r})"
        )
