"""Shared character vocabulary."""

from __future__ import annotations

import threading
from collections.abc import Iterable

from codeswitch_lm.errors import LockedTableError, UnknownSymbolError


class SymbolTable:
    """Bidirectional token <-> dense id mapping shared by every language.

    Ids are assigned in first-occurrence order. Once :meth:`lock` is called
    the table admits no new tokens; interning an already-known token still
    returns its id.
    """

    def __init__(self, tokens: Iterable[str] = ()) -> None:
        self._ids: dict[str, int] = {}
        self._tokens: list[str] = []
        self._locked = False
        self._lock = threading.Lock()
        for token in tokens:
            self.intern(token)

    @classmethod
    def frozen(cls, tokens: Iterable[str]) -> SymbolTable:
        """Rebuild a locked table from an ordered token list."""
        table = cls(tokens)
        table.lock()
        return table

    def intern(self, token: str) -> int:
        existing = self._ids.get(token)
        if existing is not None:
            return existing
        with self._lock:
            # Another worker may have admitted the token while we waited.
            existing = self._ids.get(token)
            if existing is not None:
                return existing
            if self._locked:
                raise LockedTableError(token)
            symbol_id = len(self._tokens)
            self._tokens.append(token)
            self._ids[token] = symbol_id
            return symbol_id

    def lookup(self, symbol_id: int) -> str:
        if 0 <= symbol_id < len(self._tokens):
            return self._tokens[symbol_id]
        raise UnknownSymbolError(symbol_id)

    def id_of(self, token: str) -> int:
        """Resolve a token without admitting it."""
        try:
            return self._ids[token]
        except KeyError:
            raise UnknownSymbolError(token) from None

    def lock(self) -> None:
        with self._lock:
            self._locked = True

    @property
    def locked(self) -> bool:
        return self._locked

    def size(self) -> int:
        return len(self._tokens)

    def tokens(self) -> list[str]:
        return list(self._tokens)

    def __len__(self) -> int:
        return len(self._tokens)

    def __contains__(self, token: object) -> bool:
        return token in self._ids

    def __repr__(self) -> str:
        state = "locked" if self._locked else "open"
        return f"SymbolTable(size={len(self._tokens)}, {state})"
