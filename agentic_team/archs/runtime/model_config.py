# Copyright (c) Nex-AGI. All rights reserved.
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

"""Model configuration for session runtimes."""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from agentic_team.utils.common import ConfigError

_MODEL_ENV_VARS = ("MODEL", "OPENAI_MODEL", "LLM_MODEL")
_BASE_URL_ENV_VARS = ("OPENAI_BASE_URL", "BASE_URL", "LLM_BASE_URL")
_API_KEY_ENV_VARS = ("LLM_API_KEY", "OPENAI_API_KEY", "API_KEY")


def _first_env(names: tuple[str, ...]) -> str | None:
    for var in names:
        value = os.getenv(var)
        if value:
            return value
    return None


class ModelConfig(BaseModel):
    """LLM-related parameters for one team.

    Unset ``model`` / ``base_url`` / ``api_key`` fall back to the usual
    environment variables when the client is built.
    """

    model_config = ConfigDict(extra="forbid")

    model: str | None = None
    base_url: str | None = None
    api_key: str | None = None
    temperature: float | None = None
    max_tokens: int | None = Field(default=None, gt=0)
    top_p: float | None = None
    timeout: float | None = Field(default=None, gt=0)
    retry_attempts: int = Field(default=3, ge=1)
    extra_params: dict[str, Any] = Field(default_factory=dict)

    def resolved_model(self) -> str:
        model = self.model or _first_env(_MODEL_ENV_VARS)
        if not model:
            raise ConfigError("Model not set in config or environment variables (MODEL / OPENAI_MODEL / LLM_MODEL)")
        return model

    def to_openai_params(self) -> dict[str, Any]:
        """Convert to chat-completion request parameters."""
        params: dict[str, Any] = {"model": self.resolved_model()}
        if self.temperature is not None:
            params["temperature"] = self.temperature
        if self.max_tokens is not None:
            params["max_tokens"] = self.max_tokens
        if self.top_p is not None:
            params["top_p"] = self.top_p
        params.update(self.extra_params)
        return params

    def to_client_kwargs(self) -> dict[str, Any]:
        """Convert to OpenAI client initialization kwargs."""
        kwargs: dict[str, Any] = {}
        api_key = self.api_key or _first_env(_API_KEY_ENV_VARS)
        base_url = self.base_url or _first_env(_BASE_URL_ENV_VARS)
        if api_key:
            kwargs["api_key"] = api_key
        if base_url:
            kwargs["base_url"] = base_url
        if self.timeout:
            kwargs["timeout"] = self.timeout
        # Retries are handled by the runtime with its own backoff
        kwargs["max_retries"] = 0
        return kwargs

    def __repr__(self) -> str:
        return f"ModelConfig(model='{self.model}', base_url='{self.base_url}', temperature={self.temperature})"
