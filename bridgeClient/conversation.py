"""Conversation history and the per-query recovery state.

History only ever changes by committing whole turns. A query takes a snapshot
before the model runs and either commits its turns or restores the snapshot,
so a failed query leaves nothing half-written behind.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, List, Literal, Optional, Tuple

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from shared.protocol import TextBlock


class ConversationPhase(str, Enum):
    IDLE = "idle"
    AWAITING_MODEL = "awaiting_model"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass(frozen=True)
class ConversationTurn:
    role: Literal["user", "agent"]
    content: Tuple[TextBlock, ...]

    @classmethod
    def user(cls, text: str) -> "ConversationTurn":
        return cls(role="user", content=(TextBlock(text=text),))

    @classmethod
    def agent(cls, text: str) -> "ConversationTurn":
        return cls(role="agent", content=(TextBlock(text=text),))

    @property
    def text(self) -> str:
        return "\n".join(block.text for block in self.content)

    def to_message(self) -> BaseMessage:
        if self.role == "user":
            return HumanMessage(content=self.text)
        return AIMessage(content=self.text)


Snapshot = Tuple[ConversationTurn, ...]


class Conversation:
    """Ordered turn history for one client."""

    def __init__(self, turns: Iterable[ConversationTurn] = ()):
        self._turns: Snapshot = tuple(turns)

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[ConversationTurn]:
        return iter(self._turns)

    @property
    def turns(self) -> Snapshot:
        return self._turns

    def snapshot(self) -> Snapshot:
        return self._turns

    def restore(self, snapshot: Snapshot) -> None:
        self._turns = snapshot

    def commit(self, *turns: ConversationTurn) -> None:
        self._turns = self._turns + turns

    def clear(self) -> None:
        self._turns = ()

    def to_messages(
        self,
        *pending: ConversationTurn,
        system_prompt: Optional[str] = None,
    ) -> List[BaseMessage]:
        """Render history plus not-yet-committed turns as LangChain messages."""
        messages: List[BaseMessage] = []
        if system_prompt:
            messages.append(SystemMessage(content=system_prompt))
        messages.extend(turn.to_message() for turn in (*self._turns, *pending))
        return messages


def message_text(message: BaseMessage) -> Optional[str]:
    """Return the text of a model reply, or None when it carries no text.

    Content may be a plain string or a list of content parts; only text parts
    are kept.
    """
    content = message.content
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(part.get("text", ""))
        return "".join(parts) if parts else None
    return None
