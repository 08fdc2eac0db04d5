from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class GenerationOptions(BaseModel):
    """Backend-neutral sampling options. Unset values are omitted from the request."""

    model_config = ConfigDict(extra="forbid")

    temperature: Optional[float] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None
    max_tokens: Optional[int] = None
    stop: Optional[List[str]] = None
    n: Optional[int] = None
    extra: Dict[str, Any] = Field(default_factory=dict)

    def as_params(self) -> Dict[str, Any]:
        return self.model_dump(exclude={"extra"}, exclude_none=True)


@dataclass
class Message:
    """Lightweight chat message DTO used for request building."""

    role: str
    content: str


@dataclass
class Prompt:
    """Container for the chat messages and options of one invocation."""

    messages: List[Message]
    options: GenerationOptions = field(default_factory=GenerationOptions)

    @classmethod
    def from_text(cls, text: str, options: Optional[GenerationOptions] = None) -> "Prompt":
        return cls(messages=[Message(role="user", content=text)], options=options or GenerationOptions())

    @classmethod
    def from_dicts(cls, messages: List[Dict[str, Any]], options: Optional[GenerationOptions] = None) -> "Prompt":
        """Build a Prompt from a list of simple role/content dicts."""
        return cls(
            messages=[Message(role=m.get("role", "user"), content=m.get("content") or "") for m in messages],
            options=options or GenerationOptions(),
        )


_TEXT_PROMPT_LABELS = {
    "system": "",
    "user": "Human: ",
    "assistant": "Assistant: ",
}


def messages_to_text_prompt(messages: List[Message]) -> str:
    """Render chat messages into a single text prompt for completion-style models.

    System messages are emitted unlabeled; the prompt always ends with an open
    ``Assistant:`` turn for the model to complete.
    """
    lines = []
    for message in messages:
        label = _TEXT_PROMPT_LABELS.get(message.role, f"{message.role.capitalize()}: ")
        lines.append(f"{label}{message.content}")
    lines.append("Assistant:")
    return "\n\n".join(lines)
