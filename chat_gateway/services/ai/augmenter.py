"""Adds tool output to a conversation before it is sent upstream."""
from __future__ import annotations

import logging

from ...schemas.chat import ChatMessage, MessageRole
from .classifier import ToolClassifier
from .tool_client import ToolServiceClient

logger = logging.getLogger(__name__)


class ConversationAugmenter:
    """Runs at most one tool for the latest user turn and appends its result."""

    def __init__(self, classifier: ToolClassifier, tool_client: ToolServiceClient) -> None:
        self._classifier = classifier
        self._tool_client = tool_client

    async def augment(self, conversation: list[ChatMessage]) -> list[ChatMessage]:
        """Return ``conversation`` itself, or a copy with one tool-result message appended."""
        if not conversation:
            return conversation
        latest = conversation[-1]
        if latest.role != MessageRole.USER or not isinstance(latest.content, str):
            return conversation

        selection = self._classifier.classify(latest.content)
        if selection is None:
            return conversation

        logger.info("Using tool %s for latest user message", selection.tool)
        result = await self._tool_client.invoke(selection.tool, selection.arguments)
        if not result:
            return conversation

        tool_message = ChatMessage(role=MessageRole.SYSTEM, content=f"Tool Result: {result}")
        return [*conversation, tool_message]
