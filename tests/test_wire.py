import pytest

from vdbclient import (
    EMBEDDING_KEY,
    BoolInvertedIndexType,
    BoolValueType,
    Cmek,
    CollectionConfiguration,
    DeserializationError,
    EmbeddingFunctionSpec,
    FloatListValueType,
    FtsIndexConfig,
    FtsIndexType,
    HnswIndexConfig,
    IntInvertedIndexType,
    IntValueType,
    Schema,
    SpannIndexConfig,
    SpannQuantization,
    SparseVectorIndexConfig,
    SparseVectorIndexType,
    SparseVectorValueType,
    StringInvertedIndexType,
    StringValueType,
    UpdateCollectionConfiguration,
    ValueTypes,
    VectorIndexConfig,
    VectorIndexType,
)
from vdbclient.wire import (
    parse_configuration,
    parse_embedding_function,
    parse_schema,
    to_configuration_map,
    to_embedding_function_map,
    to_schema_map,
    to_update_configuration_map,
)


@pytest.fixture
def full_schema():
    return Schema(
        defaults=ValueTypes(
            string=StringValueType(
                fts_index=FtsIndexType(enabled=False, config=FtsIndexConfig()),
                string_inverted_index=StringInvertedIndexType(),
            ),
            int_value=IntValueType(int_inverted_index=IntInvertedIndexType()),
            boolean=BoolValueType(bool_inverted_index=BoolInvertedIndexType(enabled=False)),
        ),
        keys={
            EMBEDDING_KEY: ValueTypes(float_list=FloatListValueType(
                vector_index=VectorIndexType(config=VectorIndexConfig(
                    space="cosine",
                    source_key="#document",
                    spann=SpannIndexConfig(
                        search_nprobe=64,
                        search_rng_epsilon=7.5,
                        quantize=SpannQuantization.FOUR_BIT_RABIT_Q_WITH_U_SEARCH,
                    ),
                    embedding_function=EmbeddingFunctionSpec.known("openai", {"model_name": "m"}),
                )),
            )),
            "sparse": ValueTypes(sparse_vector=SparseVectorValueType(
                sparse_vector_index=SparseVectorIndexType(config=SparseVectorIndexConfig(
                    source_key="#document", bm25=True,
                )),
            )),
        },
        cmek=Cmek.gcp_kms("projects/p/locations/l/keyRings/r/cryptoKeys/k"),
    )


# ---------------------------------------------------------------------------
# Configuration encoding
# ---------------------------------------------------------------------------

def test_encode_cosine_hnsw_configuration():
    config = CollectionConfiguration(space="cosine", hnsw_m=16, hnsw_construction_ef=200)
    assert to_configuration_map(config) == {
        "hnsw:space": "cosine",
        "hnsw:M": 16,
        "hnsw:construction_ef": 200,
    }


def test_empty_configuration_encodes_to_none():
    assert to_configuration_map(CollectionConfiguration()) is None
    assert to_configuration_map(None) is None


def test_configuration_round_trip(full_schema):
    config = CollectionConfiguration(
        space="l2",
        hnsw_m=32,
        hnsw_construction_ef=100,
        hnsw_search_ef=50,
        hnsw_num_threads=4,
        hnsw_batch_size=100,
        hnsw_sync_threshold=1000,
        hnsw_resize_factor=1.2,
        schema=full_schema,
        embedding_function=EmbeddingFunctionSpec.known("cohere", {"api_key_env_var": "CK"}),
    )
    assert parse_configuration(to_configuration_map(config)) == config


def test_partial_round_trip_keeps_unset_fields_unset():
    config = CollectionConfiguration(spann_search_nprobe=10)
    parsed = parse_configuration(to_configuration_map(config))
    assert parsed == config
    assert parsed.hnsw_m is None
    assert parsed.space is None


def test_update_payloads():
    assert to_update_configuration_map(
        UpdateCollectionConfiguration(hnsw_search_ef=100, hnsw_resize_factor=1.5)
    ) == {"hnsw": {"ef_search": 100, "resize_factor": 1.5}}
    assert to_update_configuration_map(
        UpdateCollectionConfiguration(spann_search_nprobe=16, spann_ef_search=32)
    ) == {"spann": {"search_nprobe": 16, "ef_search": 32}}


# ---------------------------------------------------------------------------
# Configuration decoding
# ---------------------------------------------------------------------------

def test_parse_empty_configuration():
    assert parse_configuration(None) is None
    assert parse_configuration({}) is None


def test_unknown_keys_are_ignored():
    assert parse_configuration({"hnsw:M": 8, "something:else": "x"}) == CollectionConfiguration(hnsw_m=8)


@pytest.mark.parametrize("payload, message", [
    ({"hnsw:M": "16"}, "hnsw:M must be numeric"),
    ({"hnsw:M": True}, "hnsw:M must be numeric"),
    ({"hnsw:M": float("nan")}, "hnsw:M must be numeric"),
    ({"hnsw:M": float("inf")}, "hnsw:M must be numeric"),
    ({"hnsw:search_ef": float("-inf")}, "hnsw:search_ef must be numeric"),
    ({"hnsw:resize_factor": float("nan")}, "hnsw:resize_factor must be > 0 and finite"),
    ({"hnsw:M": 0}, "hnsw:M must be > 0 but was 0"),
    ({"hnsw:batch_size": 1}, "hnsw:batch_size must be >= 2 but was 1"),
    ({"hnsw:resize_factor": 0}, "hnsw:resize_factor must be > 0 and finite"),
    ({"hnsw:space": 3}, "hnsw:space must be a string"),
    ({"schema": []}, "schema must be an object"),
    ({"embedding_function": {"name": ""}}, "embedding_function is invalid"),
    ({"hnsw:M": 16, "spann:search_nprobe": 8}, "both HNSW and SPANN"),
])
def test_invalid_configuration(payload, message):
    with pytest.raises(DeserializationError) as excinfo:
        parse_configuration(payload)
    assert "Server returned invalid collection configuration" in str(excinfo.value)
    assert message in str(excinfo.value)
    assert excinfo.value.status_code == 200


def test_unsupported_space():
    with pytest.raises(DeserializationError, match="unsupported hnsw:space value: manhattan"):
        parse_configuration({"hnsw:space": "manhattan"})


def test_invalid_schema_inside_configuration():
    payload = {"schema": {"keys": {EMBEDDING_KEY: {"float_list": {"vector_index": {"enabled": "yes"}}}}}}
    with pytest.raises(DeserializationError) as excinfo:
        parse_configuration(payload)
    assert "schema is invalid" in str(excinfo.value)
    assert "float_list.vector_index.enabled must be boolean" in str(excinfo.value)


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

def test_schema_round_trip(full_schema):
    assert parse_schema(to_schema_map(full_schema)) == full_schema


def test_schema_wire_shape(full_schema):
    wire = to_schema_map(full_schema)
    assert wire["cmek"] == {"gcp": "projects/p/locations/l/keyRings/r/cryptoKeys/k"}
    assert wire["defaults"]["string"]["fts_index"] == {"enabled": False, "config": {}}
    assert wire["defaults"]["bool"] == {"bool_inverted_index": {"enabled": False}}
    vector = wire["keys"][EMBEDDING_KEY]["float_list"]["vector_index"]
    assert vector["config"]["space"] == "cosine"
    assert vector["config"]["spann"]["quantize"] == "four_bit_rabit_q_with_u_search"
    assert vector["config"]["embedding_function"] == {
        "type": "known", "name": "openai", "config": {"model_name": "m"},
    }


def test_parse_schema_of_empty_payload():
    assert parse_schema(None) is None
    assert parse_schema({}) is None


def test_schema_hnsw_block_parses():
    schema = parse_schema({"keys": {EMBEDDING_KEY: {"float_list": {"vector_index": {
        "enabled": True,
        "config": {"space": "ip", "hnsw": {"ef_construction": 100, "resize_factor": 1.2}},
    }}}}})
    config = schema.get_key(EMBEDDING_KEY).float_list.vector_index.config
    assert config.hnsw == HnswIndexConfig(ef_construction=100, resize_factor=1.2)


@pytest.mark.parametrize("value", [float("inf"), float("nan")])
def test_non_finite_schema_number_is_rejected(value):
    payload = {"keys": {EMBEDDING_KEY: {"float_list": {"vector_index": {
        "config": {"hnsw": {"ef_search": value}},
    }}}}}
    with pytest.raises(DeserializationError) as excinfo:
        parse_schema(payload)
    assert "Server returned invalid collection schema" in str(excinfo.value)
    assert "ef_search must be numeric" in str(excinfo.value)


def test_unknown_schema_embedding_function_is_ignored():
    schema = parse_schema({"keys": {EMBEDDING_KEY: {"float_list": {"vector_index": {
        "config": {"embedding_function": {"type": "unknown"}},
    }}}}})
    assert schema.get_default_embedding_function_spec() is None


def test_unknown_type_outside_schema_is_strict():
    with pytest.raises(ValueError):
        parse_embedding_function({"type": "unknown"}, "embedding_function")


def test_schema_errors_carry_paths():
    with pytest.raises(DeserializationError) as excinfo:
        parse_schema({"keys": {"title": {"int": {"int_inverted_index": {"enabled": 1}}}}})
    assert "schema.keys['title'].int.int_inverted_index.enabled must be boolean" in str(excinfo.value)


def test_cmek_requires_gcp():
    with pytest.raises(DeserializationError, match="supported provider"):
        parse_schema({"cmek": {"aws": "arn"}})


# ---------------------------------------------------------------------------
# Embedding function descriptors
# ---------------------------------------------------------------------------

def test_embedding_function_map_omits_empty_parts():
    assert to_embedding_function_map(EmbeddingFunctionSpec(name="default")) == {"name": "default"}
    assert to_embedding_function_map(None) is None


def test_parse_embedding_function_trims_name():
    spec = parse_embedding_function({"type": "known", "name": " ollama ", "config": {"model": "x"}})
    assert spec == EmbeddingFunctionSpec.known("ollama", {"model": "x"})
