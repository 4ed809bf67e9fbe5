"""Normalization pipeline base types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class NormalizedLine:
    """Raw line and the tokens the pipeline produced for it."""

    original: str
    tokens: list[str]

    @property
    def normalized(self) -> str:
        return "".join(self.tokens)


class TextStage(Protocol):
    """A pure token-sequence transform applied after tokenization."""

    name: str

    def __call__(self, tokens: list[str]) -> list[str]:
        """Map an input token sequence to its rewritten sequence."""
