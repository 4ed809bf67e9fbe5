"""Built-in normalization stages: tokenization, long-s and diacritics."""

from __future__ import annotations

import re
import unicodedata

LONG_S = "ſ"
SPACE = " "

_SPACES_RE = re.compile(r"\s+")
# Letters before which printers kept a round s even mid-word.
_ROUND_S_BEFORE = frozenset({"f", "b", "k"})


def tokenize(line: str) -> list[str]:
    """Split a line into character tokens.

    Text is NFC-composed first; combining marks that remain are attached to
    the preceding base character so each token is one visible glyph.
    Whitespace runs collapse to a single space and the ends are trimmed.
    """
    text = unicodedata.normalize("NFC", line)
    text = _SPACES_RE.sub(SPACE, text).strip()
    tokens: list[str] = []
    for char in text:
        if tokens and unicodedata.combining(char) and tokens[-1] != SPACE:
            tokens[-1] += char
        else:
            tokens.append(char)
    return tokens


class LongSStage:
    """Render medial ``s`` as long-s so the model keeps it a distinct symbol."""

    name = "long-s"

    def __call__(self, tokens: list[str]) -> list[str]:
        output: list[str] = []
        last = len(tokens) - 1
        for index, token in enumerate(tokens):
            if token == "s" and index < last:
                following = tokens[index + 1]
                if _is_letter(following) and _base_char(following) not in _ROUND_S_BEFORE:
                    output.append(LONG_S)
                    continue
            output.append(token)
        return output


class StripDiacriticsStage:
    """Reduce accented tokens to their base form."""

    name = "strip-diacritics"

    def __call__(self, tokens: list[str]) -> list[str]:
        output: list[str] = []
        for token in tokens:
            stripped = strip_diacritics(token)
            if stripped:
                output.append(stripped)
        return output


def strip_diacritics(token: str) -> str:
    decomposed = unicodedata.normalize("NFD", token)
    base = "".join(char for char in decomposed if not unicodedata.combining(char))
    return unicodedata.normalize("NFC", base)


def _base_char(token: str) -> str:
    return unicodedata.normalize("NFD", token)[0].casefold()


def _is_letter(token: str) -> bool:
    return _base_char(token).isalpha()
