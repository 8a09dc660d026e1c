import numpy as np
import pytest

from vdbclient import EmbeddingFunctionError, EmbeddingFunctionSpec
from vdbclient.embeddings import (
    CohereEmbeddingFunction,
    HuggingFaceEmbeddingFunction,
    OllamaEmbeddingFunction,
    OpenAIEmbeddingFunction,
)


class StubResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code
        self.text = str(payload)

    def json(self):
        return self._payload


@pytest.fixture
def post(monkeypatch):
    calls = []
    responses = []

    def fake_post(self, url, json=None, headers=None, timeout=None):
        calls.append({"url": url, "json": json, "headers": headers})
        return responses.pop(0)

    monkeypatch.setattr("requests.Session.post", fake_post)
    return calls, responses


def test_openai_request_shape(post):
    calls, responses = post
    responses.append(StubResponse({"data": [{"embedding": [0.1, 0.2]}, {"embedding": [0.3, 0.4]}]}))
    embedder = OpenAIEmbeddingFunction(api_key="sk", model="text-embedding-3-small")
    vectors = embedder(["a", "b"])

    assert calls[0]["url"] == "https://api.openai.com/v1/embeddings"
    assert calls[0]["json"] == {"model": "text-embedding-3-small", "input": ["a", "b"]}
    assert calls[0]["headers"]["Authorization"] == "Bearer sk"
    assert len(vectors) == 2
    assert vectors[0].dtype == np.float32
    np.testing.assert_allclose(vectors[1], [0.3, 0.4], rtol=1e-6)


def test_cohere_query_and_document_input_types(post):
    calls, responses = post
    responses.extend([StubResponse({"embeddings": [[1.0]]}), StubResponse({"embeddings": [[2.0]]})])
    embedder = CohereEmbeddingFunction(api_key="ck")
    embedder(["doc"])
    embedder.embed_query(["q"])

    assert calls[0]["url"] == "https://api.cohere.ai/v1/embed"
    assert calls[0]["json"]["input_type"] == "search_document"
    assert calls[1]["json"]["input_type"] == "search_query"
    assert calls[0]["json"]["model"] == "embed-english-v2.0"


def test_huggingface_request_shape(post):
    calls, responses = post
    responses.append(StubResponse([[0.5, 0.5]]))
    embedder = HuggingFaceEmbeddingFunction(api_key="hf")
    embedder(["text"])
    assert calls[0]["url"] == (
        "https://api-inference.huggingface.co/pipeline/feature-extraction/"
        "sentence-transformers/all-MiniLM-L6-v2"
    )
    assert calls[0]["json"] == {"inputs": ["text"]}


def test_ollama_request_shape(post):
    calls, responses = post
    responses.append(StubResponse({"embeddings": [[1.0, 2.0, 3.0]]}))
    vectors = OllamaEmbeddingFunction()(["hi"])
    assert calls[0]["url"] == "http://localhost:11434/api/embed"
    assert calls[0]["json"] == {"model": "nomic-embed-text", "input": ["hi"]}
    assert vectors[0].shape == (3,)


def test_http_error_raises(post):
    _, responses = post
    responses.append(StubResponse({"error": "quota"}, status_code=429))
    with pytest.raises(EmbeddingFunctionError) as excinfo:
        OllamaEmbeddingFunction()(["hi"])
    assert excinfo.value.status_code == 429


def test_missing_key(clean_env):
    with pytest.raises(EmbeddingFunctionError, match="OPENAI_API_KEY"):
        OpenAIEmbeddingFunction()


def test_descriptor_from_runtime_embedder():
    embedder = OpenAIEmbeddingFunction(api_key="sk-secret", model="m")
    spec = EmbeddingFunctionSpec.from_embedding_function(embedder)
    assert spec.name == "openai"
    assert spec.config["model_name"] == "m"
    assert "sk-secret" not in repr(spec.config)
