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

"""OpenAI-compatible session runtime.

RFC-0004: 基于 Chat Completions 的默认会话运行时

Runs the usual tool-calling loop: call the model, execute the requested
tools in order, feed the results back, repeat. A built-in ``task_complete``
tool ends the session; the first ``Suspend`` tool result ends it early.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import openai
from openai import AsyncOpenAI

from agentic_team.archs.tool.result import Suspend, ToolError
from agentic_team.archs.tool.tool import Tool
from agentic_team.core.adapters.legacy import message_from_openai_chat, messages_to_openai_chat
from agentic_team.core.messages import Message
from agentic_team.utils.common import to_jsonable

from .base import TASK_COMPLETE_TOOL, AsyncioAgentSession, SessionRequest, SessionResult, SuspendInfo
from .model_config import ModelConfig

logger = logging.getLogger(__name__)

TASK_COMPLETE_SPEC: dict[str, Any] = {
    "type": "function",
    "function": {
        "name": TASK_COMPLETE_TOOL,
        "description": "Call this when your work is finished. Include a summary of the result.",
        "parameters": {
            "type": "object",
            "properties": {"summary": {"type": "string", "description": "Summary of what you accomplished"}},
            "required": ["summary"],
        },
    },
}

SKIPPED_TOOL_RESULT = "Skipped: the session ended before this call could run."

_TRANSIENT_ERRORS = (openai.APIConnectionError, openai.RateLimitError, openai.APITimeoutError)


def tool_to_openai_spec(tool: Tool) -> dict[str, Any]:
    """Chat-Completions function spec for ``tool``."""
    parameters = tool.get_schema() or {"type": "object", "properties": {}}
    return {
        "type": "function",
        "function": {
            "name": tool.name,
            "description": tool.description,
            "parameters": parameters,
        },
    }


def render_tool_result(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(to_jsonable(value), ensure_ascii=False)


class OpenAISessionRuntime:
    """``AgentSessionRuntime`` over an ``AsyncOpenAI`` client."""

    def __init__(
        self,
        client: AsyncOpenAI | None = None,
        model_config: ModelConfig | None = None,
        *,
        default_max_turns: int = 50,
        initial_backoff: float = 1.0,
    ) -> None:
        self._client = client
        self._model_config = model_config or ModelConfig()
        self._default_max_turns = default_max_turns
        self._initial_backoff = initial_backoff

    def _get_client(self, config: ModelConfig) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(**config.to_client_kwargs())
        return self._client

    def start_session(self, request: SessionRequest) -> AsyncioAgentSession:
        return AsyncioAgentSession(request.session_id, lambda stop_event: self._run_session(request, stop_event))

    async def _publish(self, request: SessionRequest, conversation: list[Message]) -> None:
        if request.callbacks.on_messages_update is not None:
            await request.callbacks.on_messages_update(request.session_id, list(conversation))

    async def _call_with_retry(self, config: ModelConfig, params: dict[str, Any]) -> Any:
        """Call the chat endpoint with exponential backoff on transient errors."""
        client = self._get_client(config)
        backoff = self._initial_backoff
        for i in range(config.retry_attempts):
            try:
                return await client.chat.completions.create(**params)
            except _TRANSIENT_ERRORS as e:
                logger.error(f"❌ LLM call failed (attempt {i + 1}/{config.retry_attempts}): {e}")
                if i == config.retry_attempts - 1:
                    raise
                await asyncio.sleep(backoff)
                backoff *= 2
        raise RuntimeError("retry_attempts must be at least 1")

    async def _run_session(self, request: SessionRequest, stop_event: asyncio.Event) -> SessionResult:
        config = request.model_config or self._model_config
        conversation = list(request.prior_conversation)
        if request.initial_message is not None:
            conversation.append(request.initial_message)
            await self._publish(request, conversation)

        tools_by_name = {tool.name: tool for tool in request.tools}
        tool_specs = [tool_to_openai_spec(tool) for tool in request.tools if tool.name != TASK_COMPLETE_TOOL]
        tool_specs.append(TASK_COMPLETE_SPEC)
        max_turns = request.max_turns or self._default_max_turns
        tokens_used = 0
        final_output = ""

        for turn in range(max_turns):
            if stop_event.is_set():
                logger.info(f"Session {request.session_id} stopped before turn {turn + 1}")
                return SessionResult(conversation, "stopped", final_output)

            params = config.to_openai_params()
            params["messages"] = [{"role": "system", "content": request.system_prompt}, *messages_to_openai_chat(conversation)]
            params["tools"] = tool_specs
            response = await self._call_with_retry(config, params)

            if response.usage is not None:
                tokens_used += response.usage.total_tokens or 0
            if not response.choices:
                logger.warning(f"Session {request.session_id} got an empty response")
                return SessionResult(conversation, "end_turn", final_output)

            assistant = message_from_openai_chat(response.choices[0].message.model_dump(exclude_none=True))
            conversation.append(assistant)
            text = assistant.get_text_content()
            if text:
                final_output = text

            tool_uses = assistant.get_tool_uses()
            if not tool_uses:
                await self._publish(request, conversation)
                return SessionResult(conversation, "end_turn", final_output)

            # 1. 依次执行工具；遇到 task_complete 或 Suspend 后其余调用一律跳过
            completion_summary: str | None = None
            suspend_info: SuspendInfo | None = None
            for use in tool_uses:
                if completion_summary is not None or suspend_info is not None:
                    conversation.append(Message.tool_result(use.id, SKIPPED_TOOL_RESULT, is_error=True))
                    continue

                if use.name == TASK_COMPLETE_TOOL:
                    completion_summary = str(use.input.get("summary", final_output))
                    conversation.append(Message.tool_result(use.id, "Marked complete."))
                    continue

                tool = tools_by_name.get(use.name)
                if tool is None:
                    error = ToolError(error=f"Unknown tool: {use.name}", code="not_found")
                    conversation.append(Message.tool_result(use.id, render_tool_result(error), is_error=True))
                    continue

                logger.debug(f"Session {request.session_id} calling tool {use.name} with {use.input}")
                result = await tool.execute(**use.input)
                if isinstance(result, Suspend):
                    suspend_info = SuspendInfo(reason=result.reason, data=dict(result.data), tool_name=use.name)
                    payload = {"suspended": True, "reason": result.reason, **result.data}
                    conversation.append(Message.tool_result(use.id, render_tool_result(payload)))
                else:
                    conversation.append(
                        Message.tool_result(use.id, render_tool_result(result.value), is_error=isinstance(result.value, ToolError)),
                    )

            await self._publish(request, conversation)

            # 2. 判定会话是否结束
            if completion_summary is not None:
                return SessionResult(conversation, TASK_COMPLETE_TOOL, completion_summary)
            if suspend_info is not None:
                logger.info(f"Session {request.session_id} suspended: {suspend_info.reason}")
                if request.callbacks.on_suspend is not None:
                    await request.callbacks.on_suspend(request.session_id, suspend_info)
                return SessionResult(conversation, "suspended", final_output, suspend_info)
            if request.token_limit is not None and tokens_used >= request.token_limit:
                logger.info(f"Session {request.session_id} reached token limit ({tokens_used}/{request.token_limit})")
                return SessionResult(conversation, "token_limit", final_output)

        return SessionResult(conversation, "max_turns", final_output)
