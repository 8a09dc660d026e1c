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
Embedding function interface and shared provider plumbing.

Providers are leaves: they turn a list of texts into float32 vectors.
They are normally built by :func:`vdbclient.resolver.resolve` from a
collection's descriptor, but can be passed explicitly to
``Client.create_collection`` / ``Client.get_collection``.
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import requests

from ..errors import EmbeddingFunctionError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0


class EmbeddingFunction(ABC):
    """Callable turning documents into embeddings."""

    @abstractmethod
    def __call__(self, texts: Sequence[str]) -> List[np.ndarray]:
        ...

    def embed_query(self, texts: Sequence[str]) -> List[np.ndarray]:
        """Embed query texts. Providers with asymmetric models override this."""
        return self(texts)

    @staticmethod
    @abstractmethod
    def name() -> str:
        ...

    def get_config(self) -> Dict[str, Any]:
        return {}


def resolve_api_key(
    api_key: Optional[str],
    api_key_env_var: Optional[str],
    required: bool = True,
) -> Optional[str]:
    """Explicit key first, then the named environment variable."""
    if api_key:
        return api_key
    if api_key_env_var:
        value = os.environ.get(api_key_env_var)
        if value:
            return value
        if required:
            raise EmbeddingFunctionError(
                f"API Key not found in environment variable: {api_key_env_var}"
            )
    elif required:
        raise EmbeddingFunctionError("API Key is required")
    return None


def to_float32(vectors: Any, provider: str) -> List[np.ndarray]:
    if not isinstance(vectors, list):
        raise EmbeddingFunctionError(f"{provider} returned no embeddings")
    try:
        return [np.asarray(vector, dtype=np.float32) for vector in vectors]
    except (TypeError, ValueError) as e:
        raise EmbeddingFunctionError(f"{provider} returned malformed embeddings: {e}") from e


class HttpEmbeddingFunction(EmbeddingFunction):
    """Base for providers reached over JSON/HTTP."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        self._timeout = timeout
        self._session = requests.Session()

    def _post(self, url: str, payload: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> Any:
        logger.debug("POST %s (%s)", url, self.name())
        try:
            response = self._session.post(url, json=payload, headers=headers or {}, timeout=self._timeout)
        except requests.RequestException as e:
            raise EmbeddingFunctionError(f"{self.name()} request failed: {e}") from e
        if not 200 <= response.status_code < 300:
            raise EmbeddingFunctionError(
                f"{self.name()} returned HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise EmbeddingFunctionError(f"{self.name()} returned invalid JSON") from e

    def close(self) -> None:
        self._session.close()
