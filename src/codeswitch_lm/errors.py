"""Error taxonomy shared by training, persistence and scoring."""

from __future__ import annotations

from pathlib import Path


class CodeSwitchLMError(Exception):
    """Base class for every error raised by codeswitch_lm."""


class ConfigurationError(CodeSwitchLMError, ValueError):
    """Malformed or inconsistent language/prior/path configuration."""


class MalformedRuleError(ConfigurationError):
    """A line of an alternate-spelling rule file could not be parsed."""

    def __init__(self, path: str | Path, line_number: int, line: str, reason: str) -> None:
        self.path = Path(path)
        self.line_number = line_number
        self.line = line
        super().__init__(f"{self.path}:{line_number}: {reason}: {line!r}")


class MissingResourceError(CodeSwitchLMError, FileNotFoundError):
    """A rule file, corpus path or model artifact does not exist."""

    def __init__(self, path: str | Path, *, what: str, language: str | None = None) -> None:
        self.path = Path(path)
        self.what = what
        self.language = language
        prefix = f"[{language}] " if language else ""
        super().__init__(f"{prefix}{what} not found: {self.path}")

    def __str__(self) -> str:
        return str(self.args[0])


class LockedTableError(CodeSwitchLMError, RuntimeError):
    """An unseen token was interned after the symbol table was locked."""

    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(f"symbol table is locked; cannot admit new token {token!r}")


class UnknownSymbolError(CodeSwitchLMError, LookupError):
    """A symbol id or token was never interned in the symbol table."""

    def __init__(self, symbol: int | str) -> None:
        self.symbol = symbol
        super().__init__(f"unknown symbol: {symbol!r}")

    def __str__(self) -> str:
        return str(self.args[0])


class InvalidPriorError(CodeSwitchLMError, ValueError):
    """Language priors or the stay probability cannot define a distribution."""


class MismatchedVocabularyError(CodeSwitchLMError, ValueError):
    """Sub-models were not fit against the same locked symbol table."""


class ArtifactError(CodeSwitchLMError, ValueError):
    """A persisted model artifact is structurally invalid."""


class CorpusDecodeError(CodeSwitchLMError, ValueError):
    """A corpus file is not valid text in the corpus encoding."""

    def __init__(self, path: str | Path, line_number: int, reason: str, *, language: str | None = None) -> None:
        self.path = Path(path)
        self.line_number = line_number
        self.language = language
        prefix = f"[{language}] " if language else ""
        super().__init__(f"{prefix}{self.path}:{line_number}: cannot decode corpus text: {reason}")
