"""Conversation history and the agent base class for the think-act-observe loop."""

import json
from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

import structlog

from ledgerly.clients.claude import ToolCall

logger = structlog.get_logger(__name__)


class AgentState(str, Enum):
    IDLE = "idle"
    THINKING = "thinking"
    ACTING = "acting"
    ERROR = "error"


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    TOOL_RESULT = "tool_result"


class ActionType(str, Enum):
    """What the agent decided to do after a model turn."""

    TOOL_CALL = "tool_call"
    MESSAGE = "message"
    COMPLETE = "complete"


def _now() -> datetime:
    return datetime.now(UTC)


@dataclass
class AgentMessage:
    role: MessageRole
    content: str
    tool_calls: list[ToolCall] = field(default_factory=list)
    tool_call_id: str | None = None
    timestamp: datetime = field(default_factory=_now)

    def to_llm(self) -> dict[str, Any]:
        return {
            "role": self.role.value,
            "content": self.content,
            "tool_calls": [asdict(call) for call in self.tool_calls],
            "tool_call_id": self.tool_call_id,
        }


@dataclass
class AgentAction:
    agent_id: UUID
    action_type: ActionType
    tool_calls: list[ToolCall] = field(default_factory=list)
    message: str | None = None
    timestamp: datetime = field(default_factory=_now)


class Conversation:
    """Ordered message history of one chat session."""

    def __init__(self) -> None:
        self._messages: list[AgentMessage] = []

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[AgentMessage]:
        return iter(list(self._messages))

    def __getitem__(self, index: int) -> AgentMessage:
        return self._messages[index]

    @property
    def roles(self) -> list[str]:
        return [m.role.value for m in self._messages]

    def add_user(self, content: str) -> None:
        self._messages.append(AgentMessage(role=MessageRole.USER, content=content))

    def add_assistant(self, content: str, tool_calls: list[ToolCall] | None = None) -> None:
        self._messages.append(
            AgentMessage(role=MessageRole.ASSISTANT, content=content, tool_calls=tool_calls or [])
        )

    def add_tool_result(self, tool_call_id: str, result: dict[str, Any]) -> None:
        """Record a tool envelope as the JSON text the model will read."""
        self._messages.append(
            AgentMessage(
                role=MessageRole.TOOL_RESULT,
                content=json.dumps(result, default=str),
                tool_call_id=tool_call_id,
            )
        )

    def to_llm(self) -> list[dict[str, Any]]:
        return [m.to_llm() for m in self._messages]

    def clear(self) -> None:
        self._messages.clear()


class BaseAgent(ABC):
    """Think-act-observe agent.

    ``think`` asks the model for the next step and records it as an
    ``AgentAction``. Running the requested tools and feeding their results
    back into ``conversation`` is left to the subclass's task loop.
    """

    def __init__(self, agent_id: UUID | None = None, name: str = "Agent"):
        self.id = agent_id or uuid4()
        self.name = name
        self.state = AgentState.IDLE
        self.conversation = Conversation()
        self._actions: list[AgentAction] = []
        self._logger = logger.bind(agent_id=str(self.id), agent=name)

    @property
    def action_history(self) -> list[AgentAction]:
        return list(self._actions)

    @abstractmethod
    def system_prompt(self) -> str: ...

    @abstractmethod
    def tools(self) -> list[dict[str, Any]]: ...

    @abstractmethod
    async def _generate_response(self) -> AgentAction:
        """Send the conversation to the model and turn its reply into an action."""

    async def think(self, prompt: str | None = None) -> AgentAction:
        """Decide on the next step, optionally after adding a user message."""
        self.state = AgentState.THINKING
        if prompt:
            self.conversation.add_user(prompt)

        action = await self._generate_response()
        self._actions.append(action)
        self._logger.debug(
            "agent_action",
            action_type=action.action_type.value,
            tools=[call.name for call in action.tool_calls],
        )
        return action

    def reset(self) -> None:
        """Start a fresh conversation."""
        self.conversation.clear()
        self._actions.clear()
        self.state = AgentState.IDLE

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id}, name={self.name!r}, state={self.state.value})"
