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

"""Tool implementation for agent teams."""

import functools
import inspect
import logging
import traceback
from collections.abc import Callable
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from pydantic import BaseModel, ConfigDict, Field

from agentic_team.archs.tool.result import Ok, Suspend, ToolError, ToolResult

logger = logging.getLogger(__name__)


class ToolYamlSchema(BaseModel):
    """Schema describing a tool YAML definition."""

    model_config = ConfigDict(extra="forbid")

    name: str
    description: str
    input_schema: dict[str, Any] = Field(default_factory=dict)


class Tool:
    """Tool class that represents a callable function with schema validation."""

    def __init__(
        self,
        name: str,
        description: str,
        input_schema: dict[str, Any],
        implementation: Callable[..., Any] | str | None,
    ):
        """Initialize a tool with schema and implementation."""
        self.name = name
        self.description = description
        self.input_schema = input_schema
        self.implementation: Callable[..., Any] | None = None
        self.implementation_import_path: str | None = None
        if isinstance(implementation, str):
            self.implementation_import_path = implementation
        else:
            self.implementation = implementation

        # Validate schema
        self._validate_schema()

    @classmethod
    def from_yaml(
        cls,
        yaml_path: str,
        binding: Callable[..., Any] | str | None,
    ) -> "Tool":
        """Load tool definition from YAML file and bind to implementation."""
        path = Path(yaml_path)
        if not path.exists():
            raise FileNotFoundError(f"Tool YAML file not found: {yaml_path}")

        with open(path, encoding="utf-8") as f:
            tool_def = ToolYamlSchema.model_validate(yaml.safe_load(f))

        if "context" in tool_def.input_schema.get("properties", {}):
            raise ValueError(
                f"Tool definition of `{tool_def.name}` contains 'context' field in {yaml_path}, "
                "which will be injected by the team, please remove it from the tool definition."
            )

        return cls(
            name=tool_def.name,
            description=tool_def.description,
            input_schema=tool_def.input_schema,
            implementation=binding,
        )

    def bind(self, **bound: Any) -> "Tool":
        """Return a copy whose implementation has ``bound`` keyword arguments pre-applied.

        Used to hand each agent its own view of a shared tool (e.g. the team context).
        """
        implementation = self._resolve_implementation()
        return Tool(
            name=self.name,
            description=self.description,
            input_schema=self.input_schema,
            implementation=functools.partial(implementation, **bound),
        )

    def _resolve_implementation(self) -> Callable[..., Any]:
        if self.implementation is None:
            if self.implementation_import_path:
                logger.info(f"Dynamic importing tool implementation '{self.name}': {self.implementation_import_path}")

                from agentic_team.utils.common import import_from_string

                self.implementation = import_from_string(self.implementation_import_path)
            else:
                raise ValueError(f"Tool '{self.name}' has no implementation")
        assert self.implementation is not None
        return self.implementation

    async def execute(self, **params: Any) -> ToolResult:
        """Execute the tool with given parameters.

        Plain return values are wrapped in ``Ok``; a ``Suspend`` (or ``Ok``)
        returned by the implementation is passed through untouched. Invalid
        parameters and implementation errors come back as ``Ok(ToolError)`` so
        the calling agent can correct itself.
        """
        implementation = self._resolve_implementation()

        # Drop parameters the implementation does not accept (e.g. extra model output)
        sig = inspect.signature(implementation)
        bound = implementation.keywords if isinstance(implementation, functools.partial) else {}
        accepts_kwargs = any(p.kind is inspect.Parameter.VAR_KEYWORD for p in sig.parameters.values())
        filtered_params = {k: v for k, v in params.items() if k not in bound and (accepts_kwargs or k in sig.parameters)}

        error = self.validate_params(filtered_params)
        if error is not None:
            return Ok(ToolError(error=f"Invalid parameters for tool '{self.name}': {error}", code="invalid_arguments"))

        try:
            result = implementation(**filtered_params)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.warning(f"Tool '{self.name}' raised {type(e).__name__}: {e}\n{traceback.format_exc()}")
            return Ok(ToolError(error=f"{type(e).__name__}: {e}", code="tool_failed"))

        if isinstance(result, (Ok, Suspend)):
            return result
        return Ok(result)

    def validate_params(self, params: dict[str, Any]) -> str | None:
        """Validate parameters against schema, returning the error message or ``None``.

        Only validates parameters that are defined in the schema.
        Extra parameters (bound by the team or with default values) are ignored.
        """
        schema_properties = self.input_schema.get("properties", {})
        schema_params = {k: v for k, v in params.items() if k in schema_properties}

        try:
            jsonschema.validate(schema_params, self.input_schema)
            return None
        except jsonschema.ValidationError as e:
            logger.info(f"Invalid parameters for tool '{self.name}': {schema_params}, error: {e.message}")
            return e.message

    def _validate_schema(self) -> None:
        """Validate that the input schema is valid JSON Schema."""
        try:
            jsonschema.validators.validator_for(
                self.input_schema,
            ).check_schema(self.input_schema)
        except jsonschema.SchemaError as e:
            raise ValueError(
                f"Invalid JSON Schema for tool '{self.name}': {e}",
            )

    def get_schema(self) -> dict[str, Any]:
        """Get the tool's input schema."""
        return self.input_schema.copy()

    def get_info(self) -> dict[str, Any]:
        """Get tool information."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }

    def __repr__(self) -> str:
        impl_name = getattr(self.implementation, "__name__", None) or self.implementation_import_path
        return f"Tool(name='{self.name}', implementation={impl_name})"

    def __str__(self) -> str:
        return f"Tool '{self.name}': {self.description[:50]}{'...' if len(self.description) > 50 else ''}"
