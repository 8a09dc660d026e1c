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
Wire codec for collection configuration and schema.

Configuration travels as a flat JSON object with reserved parameter
names (``hnsw:space``, ``hnsw:M``, ``spann:search_nprobe``, ...). Schema
travels as a nested object of value types and index types. Decoding a
server payload never silently defaults: a value of the wrong JSON type
is a DeserializationError.

Example:
    >>> to_configuration_map(CollectionConfiguration(space="cosine", hnsw_m=16))
    {'hnsw:space': 'cosine', 'hnsw:M': 16}
"""

from __future__ import annotations

import logging
import math
from numbers import Real
from typing import Any, Callable, Dict, Mapping, Optional

from .configuration import (
    CollectionConfiguration,
    DistanceFunction,
    UpdateCollectionConfiguration,
)
from .embedding_spec import EmbeddingFunctionSpec
from .errors import DeserializationError, ValidationError
from .schema import (
    BoolInvertedIndexConfig,
    BoolInvertedIndexType,
    BoolValueType,
    Cmek,
    CmekProvider,
    FloatInvertedIndexConfig,
    FloatInvertedIndexType,
    FloatListValueType,
    FloatValueType,
    FtsIndexConfig,
    FtsIndexType,
    HnswIndexConfig,
    IntInvertedIndexConfig,
    IntInvertedIndexType,
    IntValueType,
    Schema,
    SpannIndexConfig,
    SpannQuantization,
    SparseVectorIndexConfig,
    SparseVectorIndexType,
    SparseVectorValueType,
    StringInvertedIndexConfig,
    StringInvertedIndexType,
    StringValueType,
    ValueTypes,
    VectorIndexConfig,
    VectorIndexType,
)

logger = logging.getLogger(__name__)


# Attribute name -> wire key, in encoding order.
CONFIGURATION_KEYS = (
    ("hnsw_m", "hnsw:M"),
    ("hnsw_construction_ef", "hnsw:construction_ef"),
    ("hnsw_search_ef", "hnsw:search_ef"),
    ("hnsw_num_threads", "hnsw:num_threads"),
    ("hnsw_batch_size", "hnsw:batch_size"),
    ("hnsw_sync_threshold", "hnsw:sync_threshold"),
    ("hnsw_resize_factor", "hnsw:resize_factor"),
    ("spann_search_nprobe", "spann:search_nprobe"),
    ("spann_ef_search", "spann:ef_search"),
)

UPDATE_KEYS = (
    ("hnsw_search_ef", "hnsw", "ef_search"),
    ("hnsw_num_threads", "hnsw", "num_threads"),
    ("hnsw_batch_size", "hnsw", "batch_size"),
    ("hnsw_sync_threshold", "hnsw", "sync_threshold"),
    ("hnsw_resize_factor", "hnsw", "resize_factor"),
    ("spann_search_nprobe", "spann", "search_nprobe"),
    ("spann_ef_search", "spann", "ef_search"),
)

_HNSW_INDEX_FIELDS = (
    "ef_construction", "max_neighbors", "ef_search", "num_threads",
    "batch_size", "sync_threshold",
)

_SPANN_INT_FIELDS = (
    "search_nprobe", "nreplica_count", "split_threshold", "num_samples_kmeans",
    "reassign_neighbor_count", "merge_threshold", "num_centers_to_merge_to",
    "write_nprobe", "ef_construction", "ef_search", "max_neighbors",
)

_SPANN_FLOAT_FIELDS = (
    "search_rng_factor", "search_rng_epsilon", "write_rng_factor",
    "write_rng_epsilon", "initial_lambda",
)

# Encoding order of SPANN sub-map keys.
_SPANN_FIELD_ORDER = (
    "search_nprobe", "search_rng_factor", "search_rng_epsilon", "nreplica_count",
    "write_rng_factor", "write_rng_epsilon", "split_threshold", "num_samples_kmeans",
    "initial_lambda", "reassign_neighbor_count", "merge_threshold",
    "num_centers_to_merge_to", "write_nprobe", "ef_construction", "ef_search",
    "max_neighbors",
)


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _invalid_configuration(message: str) -> DeserializationError:
    return DeserializationError(f"Server returned invalid collection configuration: {message}")


# ============================================================================
# Encoding
# ============================================================================

def to_embedding_function_map(spec: Optional[EmbeddingFunctionSpec]) -> Optional[Dict[str, Any]]:
    if spec is None:
        return None
    result: Dict[str, Any] = {}
    if spec.type is not None:
        result["type"] = spec.type
    result["name"] = spec.name
    config = spec.config
    if config:
        result["config"] = config
    return result


def to_configuration_map(config: Optional[CollectionConfiguration]) -> Optional[Dict[str, Any]]:
    """Flat ``configuration`` object; None when nothing is set."""
    if config is None:
        return None
    result: Dict[str, Any] = {}
    if config.space is not None:
        result["hnsw:space"] = config.space.value
    for attr, key in CONFIGURATION_KEYS:
        value = getattr(config, attr)
        if value is not None:
            result[key] = value
    if config.embedding_function is not None:
        result["embedding_function"] = to_embedding_function_map(config.embedding_function)
    if config.schema is not None:
        result["schema"] = to_schema_map(config.schema)
    return result or None


def to_update_configuration_map(update: UpdateCollectionConfiguration) -> Dict[str, Any]:
    """Nested ``new_configuration`` payload: ``{"hnsw": {...}}`` or ``{"spann": {...}}``."""
    result: Dict[str, Dict[str, Any]] = {}
    for attr, block, key in UPDATE_KEYS:
        value = getattr(update, attr)
        if value is not None:
            result.setdefault(block, {})[key] = value
    if not result:
        raise ValidationError("UpdateCollectionConfiguration serialized to an empty payload")
    return result


def _put(target: Dict[str, Any], key: str, value: Any) -> None:
    if value is not None:
        target[key] = value


def _index_type_map(index_type, config_map: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if index_type is None:
        return None
    result: Dict[str, Any] = {"enabled": bool(index_type.enabled)}
    _put(result, "config", config_map)
    return result


def _empty_config_map(config) -> Optional[Dict[str, Any]]:
    return None if config is None else {}


def _hnsw_index_map(config: Optional[HnswIndexConfig]) -> Optional[Dict[str, Any]]:
    if config is None:
        return None
    result: Dict[str, Any] = {}
    for name in _HNSW_INDEX_FIELDS + ("resize_factor",):
        _put(result, name, getattr(config, name))
    return result or None


def _spann_index_map(config: Optional[SpannIndexConfig]) -> Optional[Dict[str, Any]]:
    if config is None:
        return None
    result: Dict[str, Any] = {}
    for name in _SPANN_FIELD_ORDER:
        _put(result, name, getattr(config, name))
    if config.quantize is not None:
        result["quantize"] = config.quantize.value
    return result or None


def _vector_config_map(config: Optional[VectorIndexConfig]) -> Optional[Dict[str, Any]]:
    if config is None:
        return None
    result: Dict[str, Any] = {}
    if config.space is not None:
        result["space"] = config.space.value
    _put(result, "source_key", config.source_key)
    _put(result, "hnsw", _hnsw_index_map(config.hnsw))
    _put(result, "spann", _spann_index_map(config.spann))
    _put(result, "embedding_function", to_embedding_function_map(config.embedding_function))
    return result


def _sparse_config_map(config: Optional[SparseVectorIndexConfig]) -> Optional[Dict[str, Any]]:
    if config is None:
        return None
    result: Dict[str, Any] = {}
    _put(result, "source_key", config.source_key)
    _put(result, "bm25", config.bm25)
    _put(result, "embedding_function", to_embedding_function_map(config.embedding_function))
    return result


def _value_types_map(value_types: ValueTypes) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    if value_types.string is not None:
        string = value_types.string
        entry: Dict[str, Any] = {}
        _put(entry, "fts_index", _index_type_map(
            string.fts_index, _empty_config_map(string.fts_index and string.fts_index.config)))
        _put(entry, "string_inverted_index", _index_type_map(
            string.string_inverted_index,
            _empty_config_map(string.string_inverted_index and string.string_inverted_index.config)))
        result["string"] = entry
    if value_types.float_list is not None:
        vector_index = value_types.float_list.vector_index
        entry = {}
        _put(entry, "vector_index", _index_type_map(
            vector_index, _vector_config_map(vector_index and vector_index.config)))
        result["float_list"] = entry
    if value_types.sparse_vector is not None:
        sparse_index = value_types.sparse_vector.sparse_vector_index
        entry = {}
        _put(entry, "sparse_vector_index", _index_type_map(
            sparse_index, _sparse_config_map(sparse_index and sparse_index.config)))
        result["sparse_vector"] = entry
    for attr, wire_key, index_attr in (
        ("int_value", "int", "int_inverted_index"),
        ("float_value", "float", "float_inverted_index"),
        ("boolean", "bool", "bool_inverted_index"),
    ):
        value_type = getattr(value_types, attr)
        if value_type is None:
            continue
        index_type = getattr(value_type, index_attr)
        entry = {}
        _put(entry, index_attr, _index_type_map(
            index_type, _empty_config_map(index_type and index_type.config)))
        result[wire_key] = entry
    return result


def to_schema_map(schema: Optional[Schema]) -> Optional[Dict[str, Any]]:
    if schema is None:
        return None
    result: Dict[str, Any] = {"defaults": _value_types_map(schema.defaults)}
    if schema.keys:
        result["keys"] = {key: _value_types_map(value) for key, value in schema.keys.items()}
    if schema.cmek is not None:
        result["cmek"] = {schema.cmek.provider.value: schema.cmek.resource}
    return result


# ============================================================================
# Decoding: primitives
# ============================================================================

def _require_map(raw: Any, field_name: str) -> Dict[str, Any]:
    if not isinstance(raw, Mapping):
        raise ValueError(f"{field_name} must be an object")
    for key in raw:
        if not isinstance(key, str):
            raise ValueError(f"{field_name} contains non-string key: {key!r}")
    return dict(raw)


def _require_bool(raw: Any, field_name: str) -> bool:
    if not isinstance(raw, bool):
        raise ValueError(f"{field_name} must be boolean")
    return raw


def _require_string(raw: Any, field_name: str) -> str:
    if not isinstance(raw, str):
        raise ValueError(f"{field_name} must be a string")
    return raw


def _read_number(map_: Mapping[str, Any], key: str, field_name: str, cast: Callable) -> Any:
    value = map_.get(key)
    if value is None:
        return None
    if not _is_number(value) or not math.isfinite(value):
        raise ValueError(f"{field_name}.{key} must be numeric")
    return cast(value)


def parse_embedding_function(raw: Any, field_name: str = "embedding_function") -> Optional[EmbeddingFunctionSpec]:
    """
    Decode an embedding-function descriptor.

    Within a schema (``field_name`` starting with ``schema.``) the server
    may emit a ``{"type": "unknown"}`` placeholder with no usable name;
    such descriptors are dropped rather than rejected.
    """
    if raw is None:
        return None
    map_ = _require_map(raw, field_name)
    raw_type = map_.get("type")
    raw_name = map_.get("name")
    lenient = field_name.startswith("schema.") and _is_unknown_sentinel(raw_type, raw_name)

    def ignore(reason: str) -> None:
        logger.debug("Ignoring schema embedding_function descriptor at %s: %s", field_name, reason)
        return None

    if raw_type is not None and not isinstance(raw_type, str):
        raise ValueError(f"{field_name}.type must be a string")
    if not isinstance(raw_name, str):
        if lenient:
            return ignore("type='unknown' schema sentinel without a valid name")
        raise ValueError(f"{field_name}.name must be a string")
    name = raw_name.strip()
    if not name:
        if lenient:
            return ignore("type='unknown' schema sentinel with blank name")
        raise ValueError(f"{field_name}.name must not be blank")

    config = map_.get("config")
    if config is not None:
        config = _require_map(config, f"{field_name}.config")
    return EmbeddingFunctionSpec(name=name, type=raw_type, config=config)


def _is_unknown_sentinel(raw_type: Any, raw_name: Any) -> bool:
    if not isinstance(raw_type, str) or raw_type.strip().lower() != "unknown":
        return False
    return raw_name is None or not isinstance(raw_name, str) or not raw_name.strip()


# ============================================================================
# Decoding: configuration
# ============================================================================

def _parse_config_int(config_json: Mapping[str, Any], key: str, minimum: int) -> Optional[int]:
    value = config_json.get(key)
    if value is None:
        return None
    if not _is_number(value) or not math.isfinite(value):
        raise _invalid_configuration(f"{key} must be numeric")
    value = int(value)
    if value < minimum:
        if minimum == 1:
            raise _invalid_configuration(f"{key} must be > 0 but was {value}")
        raise _invalid_configuration(f"{key} must be >= {minimum} but was {value}")
    return value


def parse_configuration(config_json: Optional[Mapping[str, Any]]) -> Optional[CollectionConfiguration]:
    """Decode a server ``configuration_json`` object; None for an empty payload."""
    if not config_json:
        return None
    if not isinstance(config_json, Mapping):
        raise _invalid_configuration("configuration must be an object")
    fields: Dict[str, Any] = {}

    space = config_json.get("hnsw:space")
    if space is not None:
        if not isinstance(space, str):
            raise _invalid_configuration("hnsw:space must be a string")
        try:
            fields["space"] = DistanceFunction.from_value(space)
        except ValueError as e:
            raise DeserializationError(
                f"Server returned unsupported hnsw:space value: {space}"
            ) from e

    for attr, key in CONFIGURATION_KEYS:
        if attr == "hnsw_resize_factor":
            value = config_json.get(key)
            if value is None:
                continue
            if not _is_number(value):
                raise _invalid_configuration(f"{key} must be numeric")
            value = float(value)
            if not value > 0 or value == float("inf"):
                raise _invalid_configuration(f"{key} must be > 0 and finite but was {value}")
            fields[attr] = value
            continue
        minimum = 2 if attr in ("hnsw_batch_size", "hnsw_sync_threshold") else 1
        value = _parse_config_int(config_json, key, minimum)
        if value is not None:
            fields[attr] = value

    if config_json.get("embedding_function") is not None:
        try:
            fields["embedding_function"] = parse_embedding_function(
                config_json["embedding_function"], "embedding_function"
            )
        except (ValueError, ValidationError) as e:
            raise _invalid_configuration(f"embedding_function is invalid: {e}") from e

    raw_schema = config_json.get("schema")
    if raw_schema is not None:
        if not isinstance(raw_schema, Mapping):
            raise _invalid_configuration("schema must be an object")
        try:
            fields["schema"] = _parse_schema(raw_schema)
        except (ValueError, ValidationError) as e:
            raise _invalid_configuration(f"schema is invalid: {e}") from e

    try:
        return CollectionConfiguration(**fields)
    except ValidationError as e:
        raise _invalid_configuration(str(e)) from e


# ============================================================================
# Decoding: schema
# ============================================================================

def parse_schema(schema_json: Optional[Mapping[str, Any]]) -> Optional[Schema]:
    """Decode a top-level ``schema`` object from a collection payload."""
    try:
        return _parse_schema(schema_json)
    except (ValueError, ValidationError) as e:
        raise DeserializationError(f"Server returned invalid collection schema: {e}") from e


def _parse_schema(schema_json: Optional[Mapping[str, Any]]) -> Optional[Schema]:
    if not schema_json:
        return None
    schema_json = _require_map(schema_json, "schema")
    defaults = ValueTypes()
    if schema_json.get("defaults") is not None:
        defaults = _parse_value_types(
            _require_map(schema_json["defaults"], "schema.defaults"), "schema.defaults"
        )
    keys: Dict[str, ValueTypes] = {}
    if schema_json.get("keys") is not None:
        for key, raw in _require_map(schema_json["keys"], "schema.keys").items():
            field_name = f"schema.keys['{key}']"
            keys[key] = _parse_value_types(_require_map(raw, field_name), field_name)
    cmek = None
    if schema_json.get("cmek") is not None:
        cmek = _parse_cmek(_require_map(schema_json["cmek"], "schema.cmek"), "schema.cmek")
    return Schema(defaults=defaults, keys=keys, cmek=cmek)


def _parse_cmek(map_: Mapping[str, Any], field_name: str) -> Cmek:
    gcp = map_.get(CmekProvider.GCP.value)
    if gcp is None:
        raise ValueError(f"{field_name} must include a supported provider (gcp)")
    return Cmek.gcp_kms(_require_string(gcp, f"{field_name}.gcp"))


def _parse_index_type(map_: Mapping[str, Any], field_name: str, index_cls, parse_config):
    kwargs: Dict[str, Any] = {}
    if map_.get("enabled") is not None:
        kwargs["enabled"] = _require_bool(map_["enabled"], f"{field_name}.enabled")
    if map_.get("config") is not None:
        config_name = f"{field_name}.config"
        kwargs["config"] = parse_config(_require_map(map_["config"], config_name), config_name)
    return index_cls(**kwargs)


def _empty_config_parser(config_cls):
    def parse(map_: Mapping[str, Any], field_name: str):
        return config_cls()
    return parse


def _parse_value_types(map_: Mapping[str, Any], field_name: str) -> ValueTypes:
    def sub(key: str) -> Optional[Dict[str, Any]]:
        raw = map_.get(key)
        return None if raw is None else _require_map(raw, f"{field_name}.{key}")

    def index(parent: Dict[str, Any], parent_name: str, key: str, index_cls, parse_config):
        raw = parent.get(key)
        if raw is None:
            return None
        name = f"{parent_name}.{key}"
        return _parse_index_type(_require_map(raw, name), name, index_cls, parse_config)

    kwargs: Dict[str, Any] = {}

    string = sub("string")
    if string is not None:
        name = f"{field_name}.string"
        kwargs["string"] = StringValueType(
            fts_index=index(string, name, "fts_index", FtsIndexType,
                            _empty_config_parser(FtsIndexConfig)),
            string_inverted_index=index(string, name, "string_inverted_index",
                                        StringInvertedIndexType,
                                        _empty_config_parser(StringInvertedIndexConfig)),
        )

    float_list = sub("float_list")
    if float_list is not None:
        kwargs["float_list"] = FloatListValueType(
            vector_index=index(float_list, f"{field_name}.float_list", "vector_index",
                               VectorIndexType, _parse_vector_index_config),
        )

    sparse_vector = sub("sparse_vector")
    if sparse_vector is not None:
        kwargs["sparse_vector"] = SparseVectorValueType(
            sparse_vector_index=index(sparse_vector, f"{field_name}.sparse_vector",
                                      "sparse_vector_index", SparseVectorIndexType,
                                      _parse_sparse_vector_index_config),
        )

    for attr, wire_key, index_attr, value_cls, index_cls, config_cls in (
        ("int_value", "int", "int_inverted_index", IntValueType,
         IntInvertedIndexType, IntInvertedIndexConfig),
        ("float_value", "float", "float_inverted_index", FloatValueType,
         FloatInvertedIndexType, FloatInvertedIndexConfig),
        ("boolean", "bool", "bool_inverted_index", BoolValueType,
         BoolInvertedIndexType, BoolInvertedIndexConfig),
    ):
        raw = sub(wire_key)
        if raw is not None:
            kwargs[attr] = value_cls(**{
                index_attr: index(raw, f"{field_name}.{wire_key}", index_attr,
                                  index_cls, _empty_config_parser(config_cls)),
            })

    return ValueTypes(**kwargs)


def _parse_vector_index_config(map_: Mapping[str, Any], field_name: str) -> VectorIndexConfig:
    kwargs: Dict[str, Any] = {}
    if map_.get("space") is not None:
        space = _require_string(map_["space"], f"{field_name}.space")
        kwargs["space"] = DistanceFunction.from_value(space)
    if map_.get("source_key") is not None:
        kwargs["source_key"] = _require_string(map_["source_key"], f"{field_name}.source_key")
    if map_.get("hnsw") is not None:
        name = f"{field_name}.hnsw"
        kwargs["hnsw"] = _parse_hnsw_index_config(_require_map(map_["hnsw"], name), name)
    if map_.get("spann") is not None:
        name = f"{field_name}.spann"
        kwargs["spann"] = _parse_spann_index_config(_require_map(map_["spann"], name), name)
    if map_.get("embedding_function") is not None:
        kwargs["embedding_function"] = parse_embedding_function(
            map_["embedding_function"], f"{field_name}.embedding_function"
        )
    return VectorIndexConfig(**kwargs)


def _parse_sparse_vector_index_config(map_: Mapping[str, Any], field_name: str) -> SparseVectorIndexConfig:
    kwargs: Dict[str, Any] = {}
    if map_.get("source_key") is not None:
        kwargs["source_key"] = _require_string(map_["source_key"], f"{field_name}.source_key")
    if map_.get("bm25") is not None:
        kwargs["bm25"] = _require_bool(map_["bm25"], f"{field_name}.bm25")
    if map_.get("embedding_function") is not None:
        kwargs["embedding_function"] = parse_embedding_function(
            map_["embedding_function"], f"{field_name}.embedding_function"
        )
    return SparseVectorIndexConfig(**kwargs)


def _parse_hnsw_index_config(map_: Mapping[str, Any], field_name: str) -> HnswIndexConfig:
    kwargs = {
        name: _read_number(map_, name, field_name, int)
        for name in _HNSW_INDEX_FIELDS
    }
    kwargs["resize_factor"] = _read_number(map_, "resize_factor", field_name, float)
    return HnswIndexConfig(**kwargs)


def _parse_spann_index_config(map_: Mapping[str, Any], field_name: str) -> SpannIndexConfig:
    kwargs: Dict[str, Any] = {
        name: _read_number(map_, name, field_name, int)
        for name in _SPANN_INT_FIELDS
    }
    for name in _SPANN_FLOAT_FIELDS:
        kwargs[name] = _read_number(map_, name, field_name, float)
    if map_.get("quantize") is not None:
        quantize = _require_string(map_["quantize"], f"{field_name}.quantize")
        kwargs["quantize"] = SpannQuantization.from_value(quantize)
    return SpannIndexConfig(**kwargs)
