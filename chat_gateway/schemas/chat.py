"""Schemas for the chat completion gateway."""
from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import ConfigDict, Field

from .base import BaseSchema

DEFAULT_TEMPERATURE = 0.3
DEFAULT_TOP_P = 0.9
DEFAULT_TOP_K = 40
DEFAULT_MAX_TOKENS = 8192
DEFAULT_PRESENCE_PENALTY = 0.0
DEFAULT_FREQUENCY_PENALTY = 0.0


class MessageRole:
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


class ChatMessage(BaseSchema):
    """Single conversation item, forwarded to the provider as-is."""

    model_config = ConfigDict(extra="allow", frozen=True)

    role: Literal["system", "user", "assistant", "tool"]
    content: Optional[str] = None


class ChatCompletionRequest(BaseSchema):
    """Incoming chat completion payload.

    Only ``model`` and ``messages`` are mandatory; every generation knob is
    optional and falls back to the gateway defaults when absent or null.
    """

    model: str
    messages: list[ChatMessage]
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None
    max_tokens: Optional[int] = None
    presence_penalty: Optional[float] = None
    frequency_penalty: Optional[float] = None
    stream: Optional[bool] = None
    tools: Optional[list[dict[str, Any]]] = None
    tool_choice: Optional[str | dict[str, Any]] = None

    def generation_parameters(self) -> GenerationParameters:
        def pick(value, default):
            return default if value is None else value

        return GenerationParameters(
            model=self.model,
            temperature=pick(self.temperature, DEFAULT_TEMPERATURE),
            top_p=pick(self.top_p, DEFAULT_TOP_P),
            top_k=pick(self.top_k, DEFAULT_TOP_K),
            max_tokens=pick(self.max_tokens, DEFAULT_MAX_TOKENS),
            presence_penalty=pick(self.presence_penalty, DEFAULT_PRESENCE_PENALTY),
            frequency_penalty=pick(self.frequency_penalty, DEFAULT_FREQUENCY_PENALTY),
            stream=pick(self.stream, False),
            tools=self.tools,
            tool_choice=self.tool_choice,
        )


class GenerationParameters(BaseSchema):
    """Resolved generation settings for one upstream call."""

    model: str
    temperature: float = DEFAULT_TEMPERATURE
    top_p: float = DEFAULT_TOP_P
    top_k: int = DEFAULT_TOP_K
    max_tokens: int = DEFAULT_MAX_TOKENS
    presence_penalty: float = DEFAULT_PRESENCE_PENALTY
    frequency_penalty: float = DEFAULT_FREQUENCY_PENALTY
    stream: bool = False
    tools: Optional[list[dict[str, Any]]] = None
    tool_choice: Optional[str | dict[str, Any]] = None


class ToolSelection(BaseSchema):
    """Tool picked for the latest user turn, with its derived arguments."""

    tool: str
    arguments: dict[str, Any] = Field(default_factory=dict)
