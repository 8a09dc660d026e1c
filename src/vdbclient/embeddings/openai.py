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

"""OpenAI embeddings endpoint."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from ..errors import EmbeddingFunctionError
from .base import HttpEmbeddingFunction, resolve_api_key, to_float32

OPENAI_API_KEY_ENV = "OPENAI_API_KEY"
DEFAULT_MODEL = "text-embedding-ada-002"
DEFAULT_BASE_API = "https://api.openai.com/v1/embeddings"


class OpenAIEmbeddingFunction(HttpEmbeddingFunction):

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_key_env_var: Optional[str] = OPENAI_API_KEY_ENV,
        model: Optional[str] = None,
        base_api: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self._api_key = resolve_api_key(api_key, api_key_env_var)
        self._api_key_env_var = api_key_env_var
        self._model = model or DEFAULT_MODEL
        self._base_api = base_api or DEFAULT_BASE_API

    @staticmethod
    def name() -> str:
        return "openai"

    def __call__(self, texts: Sequence[str]) -> List[np.ndarray]:
        body = self._post(
            self._base_api,
            {"model": self._model, "input": list(texts)},
            headers={"Authorization": f"Bearer {self._api_key}"},
        )
        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, list):
            raise EmbeddingFunctionError("openai returned no embeddings")
        return to_float32([item.get("embedding") for item in data], self.name())

    def get_config(self) -> Dict[str, Any]:
        config = {"model_name": self._model, "base_url": self._base_api}
        if self._api_key_env_var:
            config["api_key_env_var"] = self._api_key_env_var
        return config
