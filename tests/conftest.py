"""Shared fixtures: a recording transport and a counting resolver."""

from typing import Any, List, Optional, Sequence, Tuple

import numpy as np
import pytest

from vdbclient.embeddings.base import EmbeddingFunction
from vdbclient.transport import Transport


class RecordingTransport(Transport):
    """Returns queued responses and records every request."""

    def __init__(self, *responses: Any):
        self.responses = list(responses)
        self.requests: List[Tuple[str, str, Optional[Any]]] = []

    def queue(self, response: Any) -> None:
        self.responses.append(response)

    def send(self, method: str, path: str, body: Optional[Any] = None) -> Any:
        self.requests.append((method, path, body))
        if not self.responses:
            return None
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeEmbeddingFunction(EmbeddingFunction):
    """Deterministic embedder: one 3-d vector per text."""

    def __init__(self, provider: str = "fake", config=None):
        self._provider = provider
        self._config = dict(config or {})
        self.calls: List[List[str]] = []
        self.query_calls: List[List[str]] = []

    def name(self) -> str:
        return self._provider

    def __call__(self, texts: Sequence[str]) -> List[np.ndarray]:
        self.calls.append(list(texts))
        return [np.array([float(len(t)), 0.0, 1.0], dtype=np.float32) for t in texts]

    def embed_query(self, texts: Sequence[str]) -> List[np.ndarray]:
        self.query_calls.append(list(texts))
        return [np.array([float(len(t)), 1.0, 0.0], dtype=np.float32) for t in texts]

    def get_config(self):
        return dict(self._config)


class CountingResolver:
    """Stands in for resolver.resolve; one fresh embedder per call."""

    def __init__(self):
        self.specs = []

    def __call__(self, spec):
        if spec is None:
            return None
        self.specs.append(spec)
        return FakeEmbeddingFunction(provider=spec.name, config=spec.config)


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def resolver():
    return CountingResolver()


@pytest.fixture
def clean_env(monkeypatch):
    for var in ("OPENAI_API_KEY", "COHERE_API_KEY", "HF_API_KEY",
                "VDB_URL", "VDB_TENANT", "VDB_DATABASE", "VDB_TIMEOUT", "VDB_TOKEN"):
        monkeypatch.delenv(var, raising=False)
    return monkeypatch
