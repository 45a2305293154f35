"""Claude (Anthropic) client for the assistant's tool-use turns."""

from dataclasses import dataclass, field
from typing import Any

import anthropic
import structlog

from ledgerly.config import get_settings

logger = structlog.get_logger(__name__)

_CACHE_CONTROL = {"type": "ephemeral"}


@dataclass
class ToolCall:
    """One tool invocation requested by the model."""

    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass
class ClaudeResponse:
    """One model turn: its text, the tools it wants run and token usage."""

    content: str
    tool_calls: list[ToolCall]
    stop_reason: str
    usage: dict[str, int]


def to_tool_params(tools: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Build the ``tools`` parameter, marking the static tool list as cacheable."""
    params = [
        {"name": t["name"], "description": t["description"], "input_schema": t["input_schema"]}
        for t in tools
    ]
    if params:
        params[-1]["cache_control"] = _CACHE_CONTROL
    return params


def _assistant_blocks(message: dict[str, Any]) -> list[dict[str, Any]] | str:
    blocks: list[dict[str, Any]] = []
    if message.get("content"):
        blocks.append({"type": "text", "text": message["content"]})
    blocks.extend(
        {"type": "tool_use", "id": call["id"], "name": call["name"], "input": call["arguments"]}
        for call in message.get("tool_calls") or []
    )
    return blocks or message.get("content", "")


def _is_tool_result_turn(message: dict[str, Any] | None) -> bool:
    return (
        message is not None
        and message["role"] == "user"
        and isinstance(message["content"], list)
        and all(block.get("type") == "tool_result" for block in message["content"])
    )


def to_message_params(history: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Translate conversation history into Messages API turns.

    History entries have a ``role`` of ``user``, ``assistant`` or
    ``tool_result``. Tool results that follow one another are sent as a
    single user turn, because all ``tool_use`` blocks of an assistant turn
    must be answered in the next message.
    """
    params: list[dict[str, Any]] = []

    for message in history:
        role = message["role"]
        if role == "user":
            params.append({"role": "user", "content": message["content"]})
        elif role == "assistant":
            params.append({"role": "assistant", "content": _assistant_blocks(message)})
        elif role == "tool_result":
            block = {
                "type": "tool_result",
                "tool_use_id": message["tool_call_id"],
                "content": message["content"],
            }
            previous = params[-1] if params else None
            if _is_tool_result_turn(previous):
                previous["content"].append(block)
            else:
                params.append({"role": "user", "content": [block]})
        else:
            raise ValueError(f"Unknown message role: {role}")

    return params


def parse_message(message: anthropic.types.Message) -> ClaudeResponse:
    texts = [block.text for block in message.content if block.type == "text"]
    calls = [
        ToolCall(id=block.id, name=block.name, arguments=dict(block.input or {}))
        for block in message.content
        if block.type == "tool_use"
    ]
    return ClaudeResponse(
        content="\n".join(texts),
        tool_calls=calls,
        stop_reason=message.stop_reason or "end_turn",
        usage={
            "input_tokens": message.usage.input_tokens,
            "output_tokens": message.usage.output_tokens,
        },
    )


class ClaudeClient:
    """Async Messages API client.

    The SDK retries connection errors, 429s and 5xx responses itself
    (``LLM_MAX_RETRIES``); anything still failing is logged and re-raised.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        max_retries: int | None = None,
    ):
        settings = get_settings()
        self._api_key = api_key or settings.anthropic_api_key.get_secret_value()
        self._model = model or settings.claude_model
        self._max_tokens = max_tokens or settings.llm_max_tokens
        self._temperature = temperature if temperature is not None else settings.llm_temperature
        self._max_retries = max_retries if max_retries is not None else settings.llm_max_retries

        self._client = anthropic.AsyncAnthropic(
            api_key=self._api_key, max_retries=self._max_retries
        )
        self._logger = logger.bind(model=self._model)

    async def generate(
        self,
        system_prompt: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
    ) -> ClaudeResponse:
        """Run one model turn.

        Args:
            system_prompt: Instructions for the assistant; sent as a cacheable block.
            messages: Conversation history (see ``to_message_params``).
            tools: Tool definitions the model may call.

        Returns:
            The parsed response. Tool calls are returned, never executed here.
        """
        request: dict[str, Any] = {
            "model": self._model,
            "max_tokens": self._max_tokens,
            "system": [{"type": "text", "text": system_prompt, "cache_control": _CACHE_CONTROL}],
            "messages": to_message_params(messages),
        }
        # Sampling temperature only applies to plain conversation turns
        if tools:
            request["tools"] = to_tool_params(tools)
        else:
            request["temperature"] = self._temperature

        try:
            message = await self._client.messages.create(**request)
        except anthropic.APIError as e:
            self._logger.error(
                "claude_request_failed",
                error=str(e),
                status=getattr(e, "status_code", None),
            )
            raise

        response = parse_message(message)
        self._logger.info(
            "claude_turn",
            stop_reason=response.stop_reason,
            tool_calls=[call.name for call in response.tool_calls],
            **response.usage,
        )
        return response
