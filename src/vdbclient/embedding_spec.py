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
Embedding-function descriptor.

A descriptor is the serializable, provider-agnostic description of an
embedding function: a provider ``name``, an optional ``type`` (only
"known" is resolvable) and an opaque ``config`` map. Runtime embedders
are built from descriptors by :mod:`vdbclient.resolver`.

Example:
    spec = EmbeddingFunctionSpec.known(
        "openai", {"model_name": "text-embedding-3-small",
                   "api_key_env_var": "OPENAI_API_KEY"}
    )
    print(spec)   # config values under secret-looking keys are redacted
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

from .errors import ValidationError
from .validators import require_non_blank

if TYPE_CHECKING:
    from .embeddings.base import EmbeddingFunction


KNOWN_TYPE = "known"
REDACTED = "***"

_SECRET_MARKERS = ("api_key", "apikey", "token", "secret", "password")


def is_secret_key(key: str) -> bool:
    lowered = key.lower()
    return any(marker in lowered for marker in _SECRET_MARKERS)


def _redact_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return redact_config(value)
    if isinstance(value, (list, tuple)):
        items = [_redact_value(item) for item in value]
        return items if isinstance(value, list) else tuple(items)
    return value


def redact_config(config: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy of ``config`` with secret values replaced, nested maps and lists included."""
    redacted: Dict[str, Any] = {}
    for key, value in config.items():
        if is_secret_key(str(key)):
            redacted[key] = REDACTED
        else:
            redacted[key] = _redact_value(value)
    return redacted


def _freeze(value: Any) -> Any:
    # hashable form that agrees with ==
    if isinstance(value, Mapping):
        return frozenset((key, _freeze(item)) for key, item in value.items())
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    if isinstance(value, (set, frozenset)):
        return frozenset(_freeze(item) for item in value)
    return value


class EmbeddingFunctionSpec:
    """
    Immutable embedding-function descriptor.

    ``config`` is deep-copied on the way in and on every read, so callers
    can never mutate a published descriptor.
    """

    __slots__ = ("_type", "_name", "_config")

    def __init__(
        self,
        name: str,
        type: Optional[str] = None,
        config: Optional[Mapping[str, Any]] = None,
    ):
        if type is not None:
            if not isinstance(type, str):
                raise ValidationError(f"embedding function type must be a string, got {type!r}")
            type = type.strip() or None
        if config is not None and not isinstance(config, Mapping):
            raise ValidationError("embedding function config must be a mapping")
        object.__setattr__(self, "_type", type)
        object.__setattr__(self, "_name", require_non_blank("embedding function name", name))
        object.__setattr__(self, "_config", copy.deepcopy(dict(config or {})))

    def __setattr__(self, key, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    @classmethod
    def known(cls, name: str, config: Optional[Mapping[str, Any]] = None) -> "EmbeddingFunctionSpec":
        return cls(name=name, type=KNOWN_TYPE, config=config)

    @classmethod
    def from_embedding_function(cls, embedding_function: "EmbeddingFunction") -> "EmbeddingFunctionSpec":
        """Describe a runtime embedder so it can be persisted with a collection."""
        return cls.known(embedding_function.name(), embedding_function.get_config())

    @property
    def type(self) -> Optional[str]:
        return self._type

    @property
    def name(self) -> str:
        return self._name

    @property
    def config(self) -> Dict[str, Any]:
        return copy.deepcopy(self._config)

    def is_known_type(self) -> bool:
        return self._type is not None and self._type.lower() == KNOWN_TYPE

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EmbeddingFunctionSpec):
            return NotImplemented
        return (
            self._type == other._type
            and self._name == other._name
            and self._config == other._config
        )

    def __hash__(self) -> int:
        return hash((self._type, self._name, _freeze(self._config)))

    def __repr__(self) -> str:
        return (
            f"EmbeddingFunctionSpec(type={self._type!r}, name={self._name!r}, "
            f"config={redact_config(self._config)!r})"
        )

    __str__ = __repr__
