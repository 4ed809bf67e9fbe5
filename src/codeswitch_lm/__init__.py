"""Code-switching character language models for document transcription."""

from codeswitch_lm.errors import (
    ArtifactError,
    CodeSwitchLMError,
    ConfigurationError,
    CorpusDecodeError,
    InvalidPriorError,
    LockedTableError,
    MismatchedVocabularyError,
    MissingResourceError,
    UnknownSymbolError,
)
from codeswitch_lm.symbols import SymbolTable

__version__ = "0.1.0"

__all__ = [
    "ArtifactError",
    "CodeSwitchLMError",
    "ConfigurationError",
    "CorpusDecodeError",
    "InvalidPriorError",
    "LockedTableError",
    "MismatchedVocabularyError",
    "MissingResourceError",
    "SymbolTable",
    "UnknownSymbolError",
    "__version__",
]
