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

"""HuggingFace Inference API and text-embeddings-inference servers."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from .base import HttpEmbeddingFunction, resolve_api_key, to_float32

HF_API_KEY_ENV = "HF_API_KEY"
DEFAULT_MODEL = "sentence-transformers/all-MiniLM-L6-v2"
DEFAULT_BASE_API = "https://api-inference.huggingface.co/pipeline/feature-extraction/"


class HuggingFaceApiType(str, Enum):
    HF_API = "HF_API"      # hosted inference pipeline
    HFEI_API = "HFEI_API"  # self-hosted text-embeddings-inference


class HuggingFaceEmbeddingFunction(HttpEmbeddingFunction):

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_key_env_var: Optional[str] = HF_API_KEY_ENV,
        model: Optional[str] = None,
        base_api: Optional[str] = None,
        api_type: HuggingFaceApiType = HuggingFaceApiType.HF_API,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self._api_type = HuggingFaceApiType(api_type)
        hosted = self._api_type == HuggingFaceApiType.HF_API
        self._api_key = resolve_api_key(api_key, api_key_env_var, required=hosted)
        self._api_key_env_var = api_key_env_var
        self._model = model or DEFAULT_MODEL
        if hosted:
            self._url = (base_api or DEFAULT_BASE_API) + self._model
        else:
            self._url = (base_api or "http://localhost:8080").rstrip("/") + "/embed"

    @staticmethod
    def name() -> str:
        return "huggingface"

    @property
    def url(self) -> str:
        return self._url

    def __call__(self, texts: Sequence[str]) -> List[np.ndarray]:
        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}
        body = self._post(self._url, {"inputs": list(texts)}, headers=headers)
        return to_float32(body, self.name())

    def get_config(self) -> Dict[str, Any]:
        config = {"model_name": self._model, "api_type": self._api_type.value}
        if self._api_key_env_var:
            config["api_key_env_var"] = self._api_key_env_var
        return config
