from typing import Literal

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class ChatCompletion(BaseModel):
    """The parts of a chat-completions answer the service reads."""

    model: str = Field(description="Model that produced the answer.")
    content: str | None = Field(default=None, description="Text of the first choice.")
    tool_arguments: str | None = Field(
        default=None, description="JSON arguments of the first tool call, if any."
    )
    total_tokens: int = 0
