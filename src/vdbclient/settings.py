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
Client settings.

Example:
    settings = ClientSettings(base_url="http://localhost:8000", token="s3cr3t")

    # Or from the environment (VDB_URL, VDB_TENANT, VDB_DATABASE,
    # VDB_TIMEOUT, VDB_TOKEN), with explicit overrides:
    settings = ClientSettings.from_env(timeout=5.0)
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .errors import ValidationError

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_TENANT = "default_tenant"
DEFAULT_DATABASE = "default_database"
DEFAULT_TIMEOUT = 30.0

AUTHORIZATION_HEADER = "Authorization"
TOKEN_HEADER = "X-Chroma-Token"


@dataclass
class ClientSettings:
    """Connection settings for :class:`vdbclient.Client`."""

    base_url: str = DEFAULT_BASE_URL
    tenant: str = DEFAULT_TENANT
    database: str = DEFAULT_DATABASE
    timeout: float = DEFAULT_TIMEOUT
    headers: Dict[str, str] = field(default_factory=dict)
    token: Optional[str] = None
    token_header: str = AUTHORIZATION_HEADER

    def __post_init__(self):
        if not self.base_url or not self.base_url.strip():
            raise ValidationError("base_url must not be blank")
        self.base_url = self.base_url.strip().rstrip("/")
        if not self.tenant or not self.tenant.strip():
            raise ValidationError("tenant must not be blank")
        if not self.database or not self.database.strip():
            raise ValidationError("database must not be blank")
        if not isinstance(self.timeout, (int, float)) or math.isnan(self.timeout) \
                or math.isinf(self.timeout) or self.timeout <= 0:
            raise ValidationError(f"timeout must be positive and finite, got {self.timeout}")
        if self.token_header not in (AUTHORIZATION_HEADER, TOKEN_HEADER):
            raise ValidationError(
                f"token_header must be {AUTHORIZATION_HEADER} or {TOKEN_HEADER}, got {self.token_header}"
            )

    def auth_headers(self) -> Dict[str, str]:
        if not self.token:
            return {}
        if self.token_header == AUTHORIZATION_HEADER:
            return {AUTHORIZATION_HEADER: f"Bearer {self.token}"}
        return {TOKEN_HEADER: self.token}

    @classmethod
    def from_env(cls, **overrides: Any) -> "ClientSettings":
        values: Dict[str, Any] = {}
        if os.environ.get("VDB_URL"):
            values["base_url"] = os.environ["VDB_URL"]
        if os.environ.get("VDB_TENANT"):
            values["tenant"] = os.environ["VDB_TENANT"]
        if os.environ.get("VDB_DATABASE"):
            values["database"] = os.environ["VDB_DATABASE"]
        if os.environ.get("VDB_TIMEOUT"):
            try:
                values["timeout"] = float(os.environ["VDB_TIMEOUT"])
            except ValueError as e:
                raise ValidationError(f"VDB_TIMEOUT must be a number, got {os.environ['VDB_TIMEOUT']!r}") from e
        if os.environ.get("VDB_TOKEN"):
            values["token"] = os.environ["VDB_TOKEN"]
        values.update(overrides)
        return cls(**values)
