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
Collection Schema (per-field indexing rules)

A Schema says how each metadata field is indexed. ``defaults`` applies
to fields without an explicit entry; ``keys`` holds per-field overrides.
Two keys are reserved:

    #document   full-text / inverted index settings for documents
    #embedding  the default vector index, carrying the embedding-function
                descriptor used for text queries

Example:
    schema = Schema(keys={
        EMBEDDING_KEY: ValueTypes(float_list=FloatListValueType(
            vector_index=VectorIndexType(config=VectorIndexConfig(
                space=DistanceFunction.COSINE,
                embedding_function=EmbeddingFunctionSpec.known("default"),
            ))
        )),
    })
    schema.get_default_embedding_function_spec()
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from .configuration import DistanceFunction
from .embedding_spec import EmbeddingFunctionSpec
from .errors import ValidationError
from .validators import (
    require_at_least,
    require_finite,
    require_non_blank,
    require_positive,
    require_positive_finite,
    require_range,
)


DOCUMENT_KEY = "#document"
EMBEDDING_KEY = "#embedding"


def _coerce_space(value) -> Optional[DistanceFunction]:
    if value is None or isinstance(value, DistanceFunction):
        return value
    try:
        return DistanceFunction.from_value(value)
    except ValueError as e:
        raise ValidationError(str(e)) from e


def _normalize_source_key(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"source_key must be a string, got {value!r}")
    return value.strip() or None


# ============================================================================
# Index Configurations
# ============================================================================

class SpannQuantization(str, Enum):
    """Vector quantization used by SPANN indexes."""
    NONE = "none"
    FOUR_BIT_RABIT_Q_WITH_U_SEARCH = "four_bit_rabit_q_with_u_search"

    @classmethod
    def from_value(cls, value: str) -> "SpannQuantization":
        if not isinstance(value, str):
            raise ValueError(f"quantize must be a string, got {value!r}")
        normalized = value.strip().lower()
        # Older servers spell it "rabbit"
        if normalized == "four_bit_rabbit_q_with_u_search":
            normalized = cls.FOUR_BIT_RABIT_Q_WITH_U_SEARCH.value
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(f"Unsupported SPANN quantization: {value}")


@dataclass(frozen=True)
class HnswIndexConfig:
    """HNSW parameters of a schema vector index."""

    ef_construction: Optional[int] = None
    max_neighbors: Optional[int] = None
    ef_search: Optional[int] = None
    num_threads: Optional[int] = None
    batch_size: Optional[int] = None
    sync_threshold: Optional[int] = None
    resize_factor: Optional[float] = None

    def __post_init__(self):
        for name in ("ef_construction", "max_neighbors", "ef_search", "num_threads"):
            value = getattr(self, name)
            if value is not None:
                require_positive(name, value)
        if self.batch_size is not None:
            require_at_least("batch_size", self.batch_size, 2)
        if self.sync_threshold is not None:
            require_at_least("sync_threshold", self.sync_threshold, 2)
        if self.resize_factor is not None:
            require_positive_finite("resize_factor", self.resize_factor)


# Inclusive bounds accepted by the server for each SPANN knob.
SPANN_RANGES = {
    "search_nprobe": (1, 128),
    "search_rng_epsilon": (5.0, 10.0),
    "nreplica_count": (1, 8),
    "write_rng_epsilon": (5.0, 10.0),
    "split_threshold": (50, 200),
    "num_samples_kmeans": (1, 1000),
    "reassign_neighbor_count": (1, 64),
    "merge_threshold": (25, 100),
    "num_centers_to_merge_to": (1, 8),
    "write_nprobe": (1, 64),
    "ef_construction": (1, 200),
    "ef_search": (1, 200),
    "max_neighbors": (1, 64),
}

_SPANN_FINITE = ("search_rng_factor", "write_rng_factor", "initial_lambda")


@dataclass(frozen=True)
class SpannIndexConfig:
    """SPANN parameters of a schema vector index."""

    search_nprobe: Optional[int] = None
    search_rng_factor: Optional[float] = None
    search_rng_epsilon: Optional[float] = None
    nreplica_count: Optional[int] = None
    write_rng_factor: Optional[float] = None
    write_rng_epsilon: Optional[float] = None
    split_threshold: Optional[int] = None
    num_samples_kmeans: Optional[int] = None
    initial_lambda: Optional[float] = None
    reassign_neighbor_count: Optional[int] = None
    merge_threshold: Optional[int] = None
    num_centers_to_merge_to: Optional[int] = None
    write_nprobe: Optional[int] = None
    ef_construction: Optional[int] = None
    ef_search: Optional[int] = None
    max_neighbors: Optional[int] = None
    quantize: Optional[SpannQuantization] = None

    def __post_init__(self):
        for name, (low, high) in SPANN_RANGES.items():
            value = getattr(self, name)
            if value is not None:
                require_range(name, value, low, high)
        for name in _SPANN_FINITE:
            value = getattr(self, name)
            if value is not None:
                require_finite(name, value)
        if self.quantize is not None and not isinstance(self.quantize, SpannQuantization):
            try:
                object.__setattr__(self, "quantize", SpannQuantization.from_value(self.quantize))
            except ValueError as e:
                raise ValidationError(str(e)) from e


@dataclass(frozen=True)
class VectorIndexConfig:
    """
    Dense vector index settings.

    ``hnsw`` and ``spann`` are mutually exclusive. A blank ``source_key``
    is treated as unset.
    """

    space: Optional[DistanceFunction] = None
    source_key: Optional[str] = None
    hnsw: Optional[HnswIndexConfig] = None
    spann: Optional[SpannIndexConfig] = None
    embedding_function: Optional[EmbeddingFunctionSpec] = None

    def __post_init__(self):
        object.__setattr__(self, "space", _coerce_space(self.space))
        object.__setattr__(self, "source_key", _normalize_source_key(self.source_key))
        if self.hnsw is not None and self.spann is not None:
            raise ValidationError("vector index config cannot set both hnsw and spann")


@dataclass(frozen=True)
class SparseVectorIndexConfig:
    """Sparse vector index settings."""

    source_key: Optional[str] = None
    embedding_function: Optional[EmbeddingFunctionSpec] = None
    bm25: Optional[bool] = None

    def __post_init__(self):
        object.__setattr__(self, "source_key", _normalize_source_key(self.source_key))
        if self.bm25 is not None and not isinstance(self.bm25, bool):
            raise ValidationError(f"bm25 must be a boolean, got {self.bm25!r}")


@dataclass(frozen=True)
class FtsIndexConfig:
    pass


@dataclass(frozen=True)
class StringInvertedIndexConfig:
    pass


@dataclass(frozen=True)
class IntInvertedIndexConfig:
    pass


@dataclass(frozen=True)
class FloatInvertedIndexConfig:
    pass


@dataclass(frozen=True)
class BoolInvertedIndexConfig:
    pass


# ============================================================================
# Index Types (enabled + config)
# ============================================================================

@dataclass(frozen=True)
class FtsIndexType:
    enabled: bool = True
    config: Optional[FtsIndexConfig] = None


@dataclass(frozen=True)
class StringInvertedIndexType:
    enabled: bool = True
    config: Optional[StringInvertedIndexConfig] = None


@dataclass(frozen=True)
class VectorIndexType:
    enabled: bool = True
    config: Optional[VectorIndexConfig] = None


@dataclass(frozen=True)
class SparseVectorIndexType:
    enabled: bool = True
    config: Optional[SparseVectorIndexConfig] = None


@dataclass(frozen=True)
class IntInvertedIndexType:
    enabled: bool = True
    config: Optional[IntInvertedIndexConfig] = None


@dataclass(frozen=True)
class FloatInvertedIndexType:
    enabled: bool = True
    config: Optional[FloatInvertedIndexConfig] = None


@dataclass(frozen=True)
class BoolInvertedIndexType:
    enabled: bool = True
    config: Optional[BoolInvertedIndexConfig] = None


# ============================================================================
# Value Types
# ============================================================================

@dataclass(frozen=True)
class StringValueType:
    fts_index: Optional[FtsIndexType] = None
    string_inverted_index: Optional[StringInvertedIndexType] = None


@dataclass(frozen=True)
class FloatListValueType:
    vector_index: Optional[VectorIndexType] = None


@dataclass(frozen=True)
class SparseVectorValueType:
    sparse_vector_index: Optional[SparseVectorIndexType] = None


@dataclass(frozen=True)
class IntValueType:
    int_inverted_index: Optional[IntInvertedIndexType] = None


@dataclass(frozen=True)
class FloatValueType:
    float_inverted_index: Optional[FloatInvertedIndexType] = None


@dataclass(frozen=True)
class BoolValueType:
    bool_inverted_index: Optional[BoolInvertedIndexType] = None


@dataclass(frozen=True)
class ValueTypes:
    """At most one configuration per primitive kind."""

    string: Optional[StringValueType] = None
    float_list: Optional[FloatListValueType] = None
    sparse_vector: Optional[SparseVectorValueType] = None
    int_value: Optional[IntValueType] = None
    float_value: Optional[FloatValueType] = None
    boolean: Optional[BoolValueType] = None

    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (
                self.string,
                self.float_list,
                self.sparse_vector,
                self.int_value,
                self.float_value,
                self.boolean,
            )
        )


# ============================================================================
# Customer-Managed Encryption Keys
# ============================================================================

class CmekProvider(str, Enum):
    GCP = "gcp"


_GCP_KMS_PATTERN = re.compile(
    r"^projects/[^/]+/locations/[^/]+/keyRings/[^/]+/cryptoKeys/[^/]+$"
)


@dataclass(frozen=True)
class Cmek:
    """Customer-managed encryption key reference."""

    resource: str
    provider: CmekProvider = CmekProvider.GCP

    def __post_init__(self):
        resource = require_non_blank("cmek resource", self.resource)
        if self.provider == CmekProvider.GCP and not _GCP_KMS_PATTERN.match(resource):
            raise ValidationError(
                "GCP KMS resource must look like "
                "projects/<p>/locations/<l>/keyRings/<r>/cryptoKeys/<k>, "
                f"got {resource!r}"
            )
        object.__setattr__(self, "resource", resource)

    @classmethod
    def gcp_kms(cls, resource: str) -> "Cmek":
        return cls(resource=resource, provider=CmekProvider.GCP)


# ============================================================================
# Schema
# ============================================================================

@dataclass(frozen=True)
class Schema:
    """
    Per-field indexing rules of a collection.

    ``keys`` keeps insertion order and is exposed read-only.
    """

    defaults: ValueTypes = field(default_factory=ValueTypes)
    keys: Mapping[str, ValueTypes] = field(default_factory=dict)
    cmek: Optional[Cmek] = None

    def __post_init__(self):
        if self.defaults is None:
            object.__setattr__(self, "defaults", ValueTypes())
        elif not isinstance(self.defaults, ValueTypes):
            raise ValidationError("schema defaults must be ValueTypes")
        normalized = {}
        for key, value_types in (self.keys or {}).items():
            name = require_non_blank("schema key", key)
            if value_types is None:
                raise ValidationError(f"schema key {name!r} must have value types")
            if not isinstance(value_types, ValueTypes):
                raise ValidationError(f"schema key {name!r} must map to ValueTypes")
            normalized[name] = value_types
        object.__setattr__(self, "keys", MappingProxyType(normalized))

    def __hash__(self) -> int:
        return hash((self.defaults, tuple(self.keys.items()), self.cmek))

    def get_key(self, name: str) -> Optional[ValueTypes]:
        return self.keys.get(name)

    def get_default_embedding_function_spec(self) -> Optional[EmbeddingFunctionSpec]:
        """Descriptor carried by the ``#embedding`` vector index, if any."""
        value_types = self.keys.get(EMBEDDING_KEY)
        if value_types is None or value_types.float_list is None:
            return None
        vector_index = value_types.float_list.vector_index
        if vector_index is None or vector_index.config is None:
            return None
        return vector_index.config.embedding_function
