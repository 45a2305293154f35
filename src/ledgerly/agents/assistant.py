"""The finance assistant: answers questions and prepares records through tools."""

from typing import Any
from uuid import UUID

import anthropic

from ledgerly.agents.base import ActionType, AgentAction, AgentState, BaseAgent
from ledgerly.clients.claude import ClaudeClient, ToolCall
from ledgerly.config import get_settings
from ledgerly.tools.definitions import ALL_TOOLS
from ledgerly.tools.executor import ToolExecutionError, ToolExecutor

ASSISTANT_SYSTEM_PROMPT = """You are the finance assistant inside an invoicing and expense
tracking app. You help the user look up and record invoices, expenses, budgets,
categories, vendors and tax rates.

Today is {today}.

## Dates
- Whenever the user mentions a date or period in words ("last month", "since
  March", "November 5"), call parse_date_query first and use the dates it returns.
- Never guess dates yourself.

## Names
- Categories, vendors and tax rates are matched by name or percentage. When a tool
  reports several similar matches or none at all, show the user its list and ask.
  Never pick one of the candidates on the user's behalf.

## Creating records
- Call validate_expense or validate_budget first and ask for anything missing.
- create_expense and create_budget only prepare a preview. Tell the user to review
  and confirm it; nothing is saved until they do.

## Style
- Be brief and precise with amounts and currencies.
- Summarise lists instead of dumping raw data."""


class FinanceAssistant(BaseAgent):
    """Conversational assistant backed by Claude and the tool executor."""

    def __init__(
        self,
        tool_executor: ToolExecutor,
        llm_client: ClaudeClient | None = None,
        agent_id: UUID | None = None,
    ):
        super().__init__(agent_id=agent_id, name="Finance Assistant")
        self._llm_client = llm_client or ClaudeClient()
        self._tool_executor = tool_executor
        self._logger = self._logger.bind(conversation_id=tool_executor.conversation_id)

    def system_prompt(self) -> str:
        return ASSISTANT_SYSTEM_PROMPT.format(today=self._tool_executor.today().isoformat())

    def tools(self) -> list[dict[str, Any]]:
        return ALL_TOOLS

    async def _generate_response(self) -> AgentAction:
        response = await self._llm_client.generate(
            system_prompt=self.system_prompt(),
            messages=self.conversation.to_llm(),
            tools=self.tools(),
        )
        self.conversation.add_assistant(response.content, response.tool_calls)

        if response.tool_calls:
            self.state = AgentState.ACTING
            return AgentAction(
                agent_id=self.id,
                action_type=ActionType.TOOL_CALL,
                tool_calls=response.tool_calls,
                message=response.content,
            )

        self.state = AgentState.IDLE
        if response.stop_reason == "end_turn":
            action_type = ActionType.COMPLETE
        else:
            action_type = ActionType.MESSAGE
        return AgentAction(agent_id=self.id, action_type=action_type, message=response.content)

    async def execute_tool(self, call: ToolCall) -> dict[str, Any]:
        """Run one tool call. Unknown tools are reported back to the model, not raised."""
        try:
            return await self._tool_executor.execute(call.name, call.arguments)
        except ToolExecutionError as e:
            self._logger.warning("unknown_tool_requested", tool=call.name)
            return {"success": False, "error": str(e)}

    async def run_task(self, message: str, max_iterations: int | None = None) -> str:
        """Answer a user message, running tool calls until the model is done.

        Args:
            message: The user's message.
            max_iterations: Model turns allowed. Defaults to ``ASSISTANT_MAX_ITERATIONS``.

        Returns:
            The assistant's last reply text.

        Raises:
            anthropic.APIError: the model could not be reached; the agent is
                left in the ``ERROR`` state.
        """
        if max_iterations is None:
            max_iterations = get_settings().assistant_max_iterations

        self._logger.info("task_started", message_length=len(message))

        prompt: str | None = message
        reply = ""
        for turn in range(1, max_iterations + 1):
            try:
                action = await self.think(prompt)
            except anthropic.APIError:
                self.state = AgentState.ERROR
                raise
            prompt = None
            reply = action.message or ""

            if action.action_type is not ActionType.TOOL_CALL:
                self._logger.info(
                    "task_completed", turns=turn, action_type=action.action_type.value
                )
                break

            for call in action.tool_calls:
                result = await self.execute_tool(call)
                self.conversation.add_tool_result(call.id, result)
        else:
            self._logger.warning("max_iterations_reached", max_iterations=max_iterations)

        self.state = AgentState.IDLE
        return reply
