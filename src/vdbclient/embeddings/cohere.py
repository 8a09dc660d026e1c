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

"""Cohere embed endpoint."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from .base import HttpEmbeddingFunction, resolve_api_key, to_float32

COHERE_API_KEY_ENV = "COHERE_API_KEY"
DEFAULT_MODEL = "embed-english-v2.0"
DEFAULT_BASE_API = "https://api.cohere.ai/v1/"


class CohereEmbeddingFunction(HttpEmbeddingFunction):
    """
    Cohere embeddings.

    Documents are embedded with ``input_type=search_document`` and
    queries with ``search_query``.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_key_env_var: Optional[str] = COHERE_API_KEY_ENV,
        model: Optional[str] = None,
        base_api: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self._api_key = resolve_api_key(api_key, api_key_env_var)
        self._api_key_env_var = api_key_env_var
        self._model = model or DEFAULT_MODEL
        base = base_api or DEFAULT_BASE_API
        self._url = base if base.endswith("embed") else base.rstrip("/") + "/embed"

    @staticmethod
    def name() -> str:
        return "cohere"

    def _embed(self, texts: Sequence[str], input_type: str) -> List[np.ndarray]:
        body = self._post(
            self._url,
            {"model": self._model, "texts": list(texts), "input_type": input_type},
            headers={"Authorization": f"Bearer {self._api_key}"},
        )
        return to_float32(body.get("embeddings") if isinstance(body, dict) else None, self.name())

    def __call__(self, texts: Sequence[str]) -> List[np.ndarray]:
        return self._embed(texts, "search_document")

    def embed_query(self, texts: Sequence[str]) -> List[np.ndarray]:
        return self._embed(texts, "search_query")

    def get_config(self) -> Dict[str, Any]:
        config = {"model_name": self._model}
        if self._api_key_env_var:
            config["api_key_env_var"] = self._api_key_env_var
        return config
