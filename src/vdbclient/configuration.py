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
Collection Configuration

Immutable index configuration of a collection, plus the partial update
payload accepted by a running collection.

A configuration carries either HNSW parameters or SPANN parameters,
never both. Construction validates every field, so an invalid
configuration cannot exist:

Example:
    config = CollectionConfiguration(
        space=DistanceFunction.COSINE,
        hnsw_m=16,
        hnsw_construction_ef=200,
    )
    tuned = config.with_changes(hnsw_search_ef=128)

    update = UpdateCollectionConfiguration(hnsw_search_ef=100)
    collection.modify_configuration(update)
"""

from __future__ import annotations

from dataclasses import dataclass, fields as dataclass_fields, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional

from .errors import ValidationError
from .validators import (
    require_at_least,
    require_positive,
    require_positive_finite,
    require_range,
)

if TYPE_CHECKING:
    from .embedding_spec import EmbeddingFunctionSpec
    from .schema import Schema


class DistanceFunction(str, Enum):
    """Distance metric of a vector index."""
    COSINE = "cosine"
    L2 = "l2"
    IP = "ip"

    @classmethod
    def from_value(cls, value: str) -> "DistanceFunction":
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Unsupported distance function: {value!r}")
        normalized = value.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(f"Unsupported distance function: {value}")


HNSW_FIELDS = (
    "hnsw_m",
    "hnsw_construction_ef",
    "hnsw_search_ef",
    "hnsw_num_threads",
    "hnsw_batch_size",
    "hnsw_sync_threshold",
    "hnsw_resize_factor",
)

SPANN_FIELDS = ("spann_search_nprobe", "spann_ef_search")


def _validate_index_fields(obj) -> None:
    """Per-field checks shared by full and partial configurations."""
    for name in ("hnsw_m", "hnsw_construction_ef", "hnsw_search_ef", "hnsw_num_threads"):
        value = getattr(obj, name, None)
        if value is not None:
            require_positive(name, value)
    for name in ("hnsw_batch_size", "hnsw_sync_threshold"):
        value = getattr(obj, name, None)
        if value is not None:
            require_at_least(name, value, 2)
    if obj.hnsw_resize_factor is not None:
        require_positive_finite("hnsw_resize_factor", obj.hnsw_resize_factor)
    if obj.spann_search_nprobe is not None:
        require_range("spann_search_nprobe", obj.spann_search_nprobe, 1, 128)
    if obj.spann_ef_search is not None:
        require_range("spann_ef_search", obj.spann_ef_search, 1, 200)


def _set_fields(obj) -> Dict[str, Any]:
    return {
        f.name: getattr(obj, f.name)
        for f in dataclass_fields(obj)
        if getattr(obj, f.name) is not None
    }


# ============================================================================
# Full Configuration
# ============================================================================

@dataclass(frozen=True)
class CollectionConfiguration:
    """
    Fully specified collection configuration.

    Every field is optional; ``None`` means "not set" and is left for the
    server to default. Equality and hashing are field-wise.

    Attributes:
        space: Distance metric
        hnsw_*: HNSW tuning parameters
        spann_*: SPANN tuning parameters (exclusive with hnsw_*)
        schema: Per-field indexing rules
        embedding_function: Descriptor of the collection's embedder
    """

    space: Optional[DistanceFunction] = None
    hnsw_m: Optional[int] = None
    hnsw_construction_ef: Optional[int] = None
    hnsw_search_ef: Optional[int] = None
    hnsw_num_threads: Optional[int] = None
    hnsw_batch_size: Optional[int] = None
    hnsw_sync_threshold: Optional[int] = None
    hnsw_resize_factor: Optional[float] = None
    spann_search_nprobe: Optional[int] = None
    spann_ef_search: Optional[int] = None
    schema: Optional["Schema"] = None
    embedding_function: Optional["EmbeddingFunctionSpec"] = None

    def __post_init__(self):
        if self.space is not None and not isinstance(self.space, DistanceFunction):
            try:
                object.__setattr__(self, "space", DistanceFunction.from_value(self.space))
            except ValueError as e:
                raise ValidationError(str(e)) from e
        _validate_index_fields(self)
        if self.has_hnsw_parameters() and self.has_spann_parameters():
            raise ValidationError(
                "Collection configuration cannot set both HNSW and SPANN parameters"
            )

    def has_hnsw_parameters(self) -> bool:
        return any(getattr(self, name) is not None for name in HNSW_FIELDS)

    def has_spann_parameters(self) -> bool:
        return any(getattr(self, name) is not None for name in SPANN_FIELDS)

    def fields(self) -> Dict[str, Any]:
        """Set fields only, keyed by attribute name."""
        return _set_fields(self)

    def with_changes(self, **changes: Any) -> "CollectionConfiguration":
        """Return a revalidated copy with ``changes`` applied."""
        return replace(self, **changes)


# ============================================================================
# Partial Update
# ============================================================================

@dataclass(frozen=True)
class UpdateCollectionConfiguration:
    """
    Partial update for a running collection.

    Only search-time and write-path knobs can change after creation.
    At least one field must be set, and HNSW and SPANN fields cannot be
    mixed.
    """

    hnsw_search_ef: Optional[int] = None
    hnsw_num_threads: Optional[int] = None
    hnsw_batch_size: Optional[int] = None
    hnsw_sync_threshold: Optional[int] = None
    hnsw_resize_factor: Optional[float] = None
    spann_search_nprobe: Optional[int] = None
    spann_ef_search: Optional[int] = None

    def __post_init__(self):
        _validate_index_fields(self)
        if not self.fields():
            raise ValidationError("UpdateCollectionConfiguration must contain at least one field")
        if self.has_hnsw_updates() and self.has_spann_updates():
            raise ValidationError(
                "UpdateCollectionConfiguration cannot mix HNSW and SPANN parameters"
            )

    def has_hnsw_updates(self) -> bool:
        return any(getattr(self, name, None) is not None for name in HNSW_FIELDS)

    def has_spann_updates(self) -> bool:
        return any(getattr(self, name, None) is not None for name in SPANN_FIELDS)

    def fields(self) -> Dict[str, Any]:
        return _set_fields(self)
