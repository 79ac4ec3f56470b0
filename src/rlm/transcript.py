"""Transcript and character budget enforcement.

The Transcript is the append-only conversation history for one
invocation. BudgetGuard enforces the configured maximum character count
across the content of every message in it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rlm.exceptions import BudgetExceededError, EmptyInputError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from rlm.protocols import Message

logger = logging.getLogger(__name__)


class Transcript:
    """Ordered, append-only sequence of messages.

    Existing entries are never replaced or removed; ``messages`` returns
    an immutable snapshot.
    """

    def __init__(self) -> None:
        self._messages: list[Message] = []

    def append(self, message: Message) -> None:
        self._messages.append(message)

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))

    def __getitem__(self, index: int) -> Message:
        return self._messages[index]

    def __repr__(self) -> str:
        return f"Transcript(messages={len(self._messages)}, chars={self.total_content_length()})"

    def total_content_length(self) -> int:
        """Sum of content lengths, in characters.

        Messages without content (assistant tool-call turns) count as 0.
        """
        return sum(m.content_length for m in self._messages)

    def to_openai(self) -> list[dict]:
        return [m.to_openai() for m in self._messages]


class BudgetGuard:
    """Enforces a maximum total character count over a transcript.

    Usage::

        guard = BudgetGuard(16384)
        guard.check(transcript)                   # initial and final checkpoints
        guard.check_addition(transcript, output)  # before appending a tool result
    """

    def __init__(self, limit: int) -> None:
        if limit < 0:
            raise ValueError(f"Character limit must be non-negative, got {limit}")
        self._limit = limit

    @property
    def limit(self) -> int:
        return self._limit

    def check(self, transcript: Transcript) -> int:
        """Validate the whole transcript.

        Returns:
            The measured total content length.

        Raises:
            EmptyInputError: If the transcript has no content at all.
            BudgetExceededError: If the total exceeds the limit.
        """
        total = transcript.total_content_length()
        if total == 0:
            raise EmptyInputError()
        if total > self._limit:
            raise BudgetExceededError(total, self._limit)
        logger.debug("Transcript size %d/%d characters", total, self._limit)
        return total

    def check_addition(self, transcript: Transcript, content: str) -> int:
        """Validate the prospective total of appending ``content``.

        Runs before the append so an oversized entry never enters the
        transcript. Emptiness is not checked here.

        Returns:
            The prospective total content length.

        Raises:
            BudgetExceededError: If the prospective total exceeds the limit.
        """
        prospective = transcript.total_content_length() + len(content)
        if prospective > self._limit:
            raise BudgetExceededError(prospective, self._limit)
        return prospective
