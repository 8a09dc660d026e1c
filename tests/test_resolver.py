import pytest

from vdbclient import EmbeddingFunctionSpec, ResolutionError
from vdbclient.embeddings import (
    CohereEmbeddingFunction,
    HuggingFaceApiType,
    HuggingFaceEmbeddingFunction,
    OllamaEmbeddingFunction,
    OpenAIEmbeddingFunction,
)
from vdbclient.embeddings.base import DEFAULT_TIMEOUT
from vdbclient.resolver import build_params, canonical_provider_name, resolve


def test_none_resolves_to_none():
    assert resolve(None) is None


def test_hf_synonym_with_explicit_api_key(clean_env):
    clean_env.setenv("HF_API_KEY", "from-env")
    spec = EmbeddingFunctionSpec(
        name="hf",
        config={"api_key": "x", "model": "sentence-transformers/all-MiniLM-L6-v2"},
    )
    embedder = resolve(spec)
    assert isinstance(embedder, HuggingFaceEmbeddingFunction)
    assert embedder._api_key == "x"
    assert embedder.url.endswith("sentence-transformers/all-MiniLM-L6-v2")


@pytest.mark.parametrize("name", ["huggingface", "Hugging_Face", " HF "])
def test_huggingface_synonyms(clean_env, name):
    clean_env.setenv("HF_API_KEY", "k")
    assert isinstance(resolve(EmbeddingFunctionSpec.known(name)), HuggingFaceEmbeddingFunction)


def test_huggingface_api_type(clean_env):
    embedder = resolve(EmbeddingFunctionSpec.known(
        "huggingface", {"api_type": "hfei_api", "base_url": "http://tei:8080"}
    ))
    assert embedder.url == "http://tei:8080/embed"
    assert embedder.get_config()["api_type"] == HuggingFaceApiType.HFEI_API.value


def test_unsupported_huggingface_api_type(clean_env):
    clean_env.setenv("HF_API_KEY", "k")
    with pytest.raises(ResolutionError, match="unsupported huggingface api_type: grpc"):
        resolve(EmbeddingFunctionSpec.known("hf", {"api_type": "grpc"}))


def test_openai_uses_default_env_var(clean_env):
    clean_env.setenv("OPENAI_API_KEY", "sk-env")
    embedder = resolve(EmbeddingFunctionSpec.known("OpenAI"))
    assert isinstance(embedder, OpenAIEmbeddingFunction)
    assert embedder._api_key == "sk-env"


def test_custom_env_var_wins_over_default(clean_env):
    clean_env.setenv("OPENAI_API_KEY", "sk-default")
    clean_env.setenv("MY_KEY", "sk-custom")
    embedder = resolve(EmbeddingFunctionSpec.known("openai", {"api_key_env_var": "MY_KEY"}))
    assert embedder._api_key == "sk-custom"


def test_explicit_key_wins_over_env_var(clean_env):
    clean_env.setenv("MY_KEY", "sk-custom")
    embedder = resolve(EmbeddingFunctionSpec.known(
        "cohere", {"apiKey": "sk-explicit", "apiKeyEnvVar": "MY_KEY"}
    ))
    assert isinstance(embedder, CohereEmbeddingFunction)
    assert embedder._api_key == "sk-explicit"


def test_missing_env_key_is_wrapped(clean_env):
    with pytest.raises(ResolutionError) as excinfo:
        resolve(EmbeddingFunctionSpec.known("openai"))
    message = str(excinfo.value)
    assert message.startswith("Failed to initialize embedding function provider 'openai'")
    assert "API Key not found in environment variable: OPENAI_API_KEY" in message
    assert excinfo.value.__cause__ is not None


def test_ollama_needs_no_key(clean_env):
    embedder = resolve(EmbeddingFunctionSpec.known("ollama", {"model_name": "mxbai-embed-large"}))
    assert isinstance(embedder, OllamaEmbeddingFunction)
    assert embedder.get_config()["model_name"] == "mxbai-embed-large"


def test_unsupported_type():
    with pytest.raises(ResolutionError) as excinfo:
        resolve(EmbeddingFunctionSpec(name="openai", type="legacy"))
    message = str(excinfo.value)
    assert "Unsupported embedding function type 'legacy' for provider 'openai'" in message
    assert message.endswith("one of [default, openai, cohere, huggingface, ollama].")


def test_unsupported_provider():
    with pytest.raises(ResolutionError, match="Unsupported embedding function provider 'voyage'"):
        resolve(EmbeddingFunctionSpec.known("voyage"))


def test_non_string_config_value(clean_env):
    with pytest.raises(ResolutionError, match="model_name must be a string"):
        resolve(EmbeddingFunctionSpec.known("ollama", {"model_name": 7}))


def test_build_params_precedence():
    params = build_params(
        {"base_url": " ", "base_api": "http://b", "model": "m", "api_key_env_var": "E"},
        "DEFAULT_ENV",
    )
    assert params == {"base_api": "http://b", "model": "m", "api_key_env_var": "E"}
    assert build_params(None, "DEFAULT_ENV") == {"api_key_env_var": "DEFAULT_ENV"}


def test_resolver_does_not_cache(clean_env):
    spec = EmbeddingFunctionSpec.known("ollama")
    assert resolve(spec) is not resolve(spec)


def test_canonical_provider_name():
    assert canonical_provider_name("HF") == "huggingface"
    assert canonical_provider_name("Custom") == "custom"


@pytest.mark.parametrize("error", [LookupError("no such model"), AttributeError("broken backend")])
def test_any_provider_failure_is_wrapped(monkeypatch, error):
    def failing_default():
        raise error

    monkeypatch.setattr("vdbclient.resolver.DefaultEmbeddingFunction", failing_default)
    with pytest.raises(ResolutionError) as excinfo:
        resolve(EmbeddingFunctionSpec.known("default"))
    assert str(excinfo.value).startswith("Failed to initialize embedding function provider 'default'")
    assert str(error) in str(excinfo.value)
    assert excinfo.value.__cause__ is error


def test_timeout_reaches_http_providers(clean_env):
    embedder = resolve(EmbeddingFunctionSpec.known("ollama"), timeout=2.5)
    assert embedder._timeout == 2.5


def test_provider_default_timeout_without_override(clean_env):
    embedder = resolve(EmbeddingFunctionSpec.known("ollama"))
    assert embedder._timeout == DEFAULT_TIMEOUT
