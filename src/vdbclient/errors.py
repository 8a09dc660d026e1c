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
vdbclient Errors

Exception hierarchy shared by the configuration model, the wire codec,
the embedding-function resolver and the HTTP transport.

Example:
    try:
        collection = client.get_collection("docs")
    except NotFoundError:
        collection = client.create_collection("docs")
"""

from __future__ import annotations

from typing import Optional


class VdbError(Exception):
    """Base class for every error raised by vdbclient."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code

    def __str__(self) -> str:
        return self.message


# ============================================================================
# Local Errors
# ============================================================================

class ValidationError(VdbError, ValueError):
    """Configuration or argument failed local validation."""


class ResolutionError(VdbError):
    """Embedding-function descriptor could not be turned into an embedder."""


class EmbeddingFunctionError(VdbError):
    """A provider client failed to initialize or to embed."""


class VdbConnectionError(VdbError):
    """The server could not be reached."""


class DeserializationError(VdbError):
    """
    Server payload could not be decoded into the expected shape.

    Always tied to a successful HTTP status: the request went through,
    the body is what is wrong.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 200,
        error_code: Optional[str] = None,
    ):
        if status_code is None or not 200 <= status_code <= 299:
            raise ValueError(
                f"DeserializationError requires a 2xx status code, got {status_code}"
            )
        super().__init__(message, status_code, error_code)


# ============================================================================
# HTTP Errors
# ============================================================================

class ClientError(VdbError):
    """4xx response."""


class BadRequestError(ClientError):
    pass


class UnauthorizedError(ClientError):
    pass


class ForbiddenError(ClientError):
    pass


class NotFoundError(ClientError):
    pass


class ConflictError(ClientError):
    pass


class ServerError(VdbError):
    """5xx response."""


_STATUS_ERRORS = {
    400: BadRequestError,
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    409: ConflictError,
}


def error_from_status(
    status_code: int,
    message: str,
    error_code: Optional[str] = None,
) -> VdbError:
    """Map an HTTP status code to the matching exception instance."""
    cls = _STATUS_ERRORS.get(status_code)
    if cls is None:
        if 400 <= status_code < 500:
            cls = ClientError
        elif 500 <= status_code < 600:
            cls = ServerError
        else:
            cls = VdbError
    return cls(message, status_code, error_code)
