"""Conversational agents for the Ledgerly assistant."""

from ledgerly.agents.assistant import ASSISTANT_SYSTEM_PROMPT, FinanceAssistant
from ledgerly.agents.base import (
    ActionType,
    AgentAction,
    AgentMessage,
    AgentState,
    BaseAgent,
    Conversation,
    MessageRole,
)

__all__ = [
    "BaseAgent",
    "Conversation",
    "AgentState",
    "AgentMessage",
    "AgentAction",
    "ActionType",
    "MessageRole",
    "FinanceAssistant",
    "ASSISTANT_SYSTEM_PROMPT",
]
