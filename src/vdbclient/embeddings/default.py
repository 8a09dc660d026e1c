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
Default local embedding function.

Runs ``all-MiniLM-L6-v2`` through sentence-transformers, which is an
optional dependency (``pip install vdbclient[local]``).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from ..errors import EmbeddingFunctionError
from .base import EmbeddingFunction

DEFAULT_MODEL = "all-MiniLM-L6-v2"


class DefaultEmbeddingFunction(EmbeddingFunction):

    def __init__(self, model: Optional[str] = None, **kwargs: Any):
        try:
            from sentence_transformers import SentenceTransformer
        except ImportError as e:
            raise EmbeddingFunctionError(
                "The default embedding function requires sentence-transformers. "
                "Install it with: pip install vdbclient[local]"
            ) from e
        self._model_name = model or DEFAULT_MODEL
        self._model = SentenceTransformer(self._model_name)

    @staticmethod
    def name() -> str:
        return "default"

    def __call__(self, texts: Sequence[str]) -> List[np.ndarray]:
        vectors = self._model.encode(list(texts), convert_to_numpy=True)
        return [np.asarray(vector, dtype=np.float32) for vector in vectors]

    def get_config(self) -> Dict[str, Any]:
        return {}
