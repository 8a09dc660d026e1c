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
Embedding Function Resolver

Turns an :class:`EmbeddingFunctionSpec` into a ready-to-call embedder.
Dispatch is over a closed set of providers; anything else fails at the
dispatch site with guidance. No caching happens here: the collection
handle caches what it resolves.

Example:
    spec = EmbeddingFunctionSpec(name="hf", config={"api_key": "hf_..."})
    embedder = resolve(spec)   # HuggingFaceEmbeddingFunction
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from .embedding_spec import EmbeddingFunctionSpec
from .embeddings import (
    CohereEmbeddingFunction,
    DefaultEmbeddingFunction,
    EmbeddingFunction,
    HuggingFaceApiType,
    HuggingFaceEmbeddingFunction,
    OllamaEmbeddingFunction,
    OpenAIEmbeddingFunction,
)
from .embeddings.cohere import COHERE_API_KEY_ENV
from .embeddings.huggingface import HF_API_KEY_ENV
from .embeddings.openai import OPENAI_API_KEY_ENV
from .errors import ResolutionError

logger = logging.getLogger(__name__)

GUIDANCE = ". Use query_embeddings(...) or one of [default, openai, cohere, huggingface, ollama]."


class Provider(str, Enum):
    DEFAULT = "default"
    OPENAI = "openai"
    COHERE = "cohere"
    HUGGINGFACE = "huggingface"
    OLLAMA = "ollama"


_PROVIDER_ALIASES = {
    "default": Provider.DEFAULT,
    "openai": Provider.OPENAI,
    "cohere": Provider.COHERE,
    "huggingface": Provider.HUGGINGFACE,
    "hugging_face": Provider.HUGGINGFACE,
    "hf": Provider.HUGGINGFACE,
    "ollama": Provider.OLLAMA,
}


def _unsupported(message: str) -> ResolutionError:
    return ResolutionError(message + GUIDANCE)


def first_string(config: Mapping[str, Any], *keys: str) -> Optional[str]:
    """First non-blank string among ``keys``; non-string values are errors."""
    for key in keys:
        value = config.get(key)
        if value is None:
            continue
        if not isinstance(value, str):
            raise ValueError(f"{key} must be a string")
        normalized = value.strip()
        if normalized:
            return normalized
    return None


def build_params(config: Optional[Mapping[str, Any]], default_api_key_env: Optional[str]) -> Dict[str, Any]:
    """
    Map descriptor config onto provider keyword arguments.

    Precedence for credentials: ``api_key`` > ``api_key_env_var`` >
    the provider's default environment variable.
    """
    config = config or {}
    params: Dict[str, Any] = {}
    base_api = first_string(config, "base_url", "base_api", "baseAPI")
    if base_api is not None:
        params["base_api"] = base_api
    model = first_string(config, "model_name", "model")
    if model is not None:
        params["model"] = model

    api_key = first_string(config, "api_key", "apiKey")
    if api_key is not None:
        params["api_key"] = api_key
        params["api_key_env_var"] = None
    else:
        env_var = first_string(config, "api_key_env_var", "apiKeyEnvVar")
        params["api_key_env_var"] = env_var if env_var is not None else default_api_key_env
    return params


def build_huggingface_params(config: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    params = build_params(config, HF_API_KEY_ENV)
    api_type = first_string(config or {}, "api_type", "apiType")
    if api_type is not None:
        normalized = api_type.upper()
        if normalized not in HuggingFaceApiType.__members__:
            raise ValueError(f"unsupported huggingface api_type: {api_type}")
        params["api_type"] = HuggingFaceApiType[normalized]
    return params


def _construct(provider: Provider, config: Dict[str, Any], timeout: Optional[float] = None) -> EmbeddingFunction:
    if provider is Provider.DEFAULT:
        return DefaultEmbeddingFunction()
    http: Dict[str, Any] = {} if timeout is None else {"timeout": timeout}
    if provider is Provider.OPENAI:
        return OpenAIEmbeddingFunction(**build_params(config, OPENAI_API_KEY_ENV), **http)
    if provider is Provider.COHERE:
        return CohereEmbeddingFunction(**build_params(config, COHERE_API_KEY_ENV), **http)
    if provider is Provider.HUGGINGFACE:
        return HuggingFaceEmbeddingFunction(**build_huggingface_params(config), **http)
    if provider is Provider.OLLAMA:
        return OllamaEmbeddingFunction(**build_params(config, None), **http)
    raise AssertionError(f"unhandled provider {provider}")


def resolve(
    spec: Optional[EmbeddingFunctionSpec],
    timeout: Optional[float] = None,
) -> Optional[EmbeddingFunction]:
    """
    Build the embedder described by ``spec``.

    ``timeout`` is handed to HTTP providers; None keeps their default.

    Returns None for a None spec. Raises ResolutionError when the
    descriptor is unsupported or the provider fails to initialize; the
    provider's error is chained as the cause.
    """
    if spec is None:
        return None
    raw_name = spec.name
    if raw_name is None or not raw_name.strip():
        raise ResolutionError(
            "Embedding function provider name is missing. "
            "Use query_embeddings(...) or set a valid embedding_function descriptor."
        )
    if spec.type is not None and not spec.is_known_type():
        raise _unsupported(
            f"Unsupported embedding function type '{spec.type}' for provider '{raw_name}'"
        )
    provider = _PROVIDER_ALIASES.get(raw_name.strip().lower())
    if provider is None:
        raise _unsupported(f"Unsupported embedding function provider '{raw_name}'")

    logger.debug("Resolving embedding function %r", spec)
    try:
        return _construct(provider, spec.config, timeout)
    except ResolutionError:
        raise
    except Exception as e:
        raise ResolutionError(
            f"Failed to initialize embedding function provider '{raw_name}': {e}"
        ) from e


def canonical_provider_name(name: str) -> str:
    """Canonical provider id for ``name``; unknown names are returned lowercased."""
    normalized = name.strip().lower()
    provider = _PROVIDER_ALIASES.get(normalized)
    return provider.value if provider is not None else normalized
