"""LLM client for the Ledgerly assistant."""

from ledgerly.clients.claude import ClaudeClient, ClaudeResponse, ToolCall

__all__ = ["ClaudeClient", "ClaudeResponse", "ToolCall"]
