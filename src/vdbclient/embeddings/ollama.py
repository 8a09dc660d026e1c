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

"""Ollama local embeddings."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from .base import HttpEmbeddingFunction, to_float32

DEFAULT_MODEL = "nomic-embed-text"
DEFAULT_BASE_API = "http://localhost:11434/api/embed"


class OllamaEmbeddingFunction(HttpEmbeddingFunction):

    def __init__(
        self,
        model: Optional[str] = None,
        base_api: Optional[str] = None,
        api_key: Optional[str] = None,
        api_key_env_var: Optional[str] = None,
        **kwargs: Any,
    ):
        # Ollama has no auth; key arguments are accepted for a uniform signature
        super().__init__(**kwargs)
        self._model = model or DEFAULT_MODEL
        self._base_api = base_api or DEFAULT_BASE_API

    @staticmethod
    def name() -> str:
        return "ollama"

    def __call__(self, texts: Sequence[str]) -> List[np.ndarray]:
        body = self._post(self._base_api, {"model": self._model, "input": list(texts)})
        return to_float32(body.get("embeddings") if isinstance(body, dict) else None, self.name())

    def get_config(self) -> Dict[str, Any]:
        return {"model_name": self._model, "base_url": self._base_api}
