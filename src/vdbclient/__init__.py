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
vdbclient - Python client for a remote vector database

Collection configuration (HNSW / SPANN), per-field schema, and
embedding-function descriptors that are validated locally, reconciled
with server updates, and resolved into runtime embedders.

Example:
    from vdbclient import Client, CollectionConfiguration, UpdateCollectionConfiguration

    client = Client()
    docs = client.create_collection(
        "docs",
        configuration=CollectionConfiguration(space="cosine", hnsw_m=16),
    )
    docs.modify_configuration(UpdateCollectionConfiguration(hnsw_search_ef=100))
"""

from .client import (
    Client,
    validate_embedding_function_conflict_on_create,
    validate_embedding_function_conflict_on_get,
)
from .collection import Collection, CollectionState, GetResult, QueryResult, effective_embedding_function_spec
from .configuration import (
    CollectionConfiguration,
    DistanceFunction,
    UpdateCollectionConfiguration,
)
from .embedding_spec import EmbeddingFunctionSpec
from .errors import (
    BadRequestError,
    ClientError,
    ConflictError,
    DeserializationError,
    EmbeddingFunctionError,
    ForbiddenError,
    NotFoundError,
    ResolutionError,
    ServerError,
    UnauthorizedError,
    ValidationError,
    VdbConnectionError,
    VdbError,
)
from .resolver import resolve
from .schema import (
    DOCUMENT_KEY,
    EMBEDDING_KEY,
    BoolInvertedIndexConfig,
    BoolInvertedIndexType,
    BoolValueType,
    Cmek,
    CmekProvider,
    FloatInvertedIndexConfig,
    FloatInvertedIndexType,
    FloatListValueType,
    FloatValueType,
    FtsIndexConfig,
    FtsIndexType,
    HnswIndexConfig,
    IntInvertedIndexConfig,
    IntInvertedIndexType,
    IntValueType,
    Schema,
    SpannIndexConfig,
    SpannQuantization,
    SparseVectorIndexConfig,
    SparseVectorIndexType,
    SparseVectorValueType,
    StringInvertedIndexConfig,
    StringInvertedIndexType,
    StringValueType,
    ValueTypes,
    VectorIndexConfig,
    VectorIndexType,
)
from .settings import ClientSettings
from .transport import ApiPaths, HttpTransport, Transport

__version__ = "0.1.0"
