"""Composition of per-language models into a code-switching model."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

import numpy as np

from codeswitch_lm.errors import InvalidPriorError, MismatchedVocabularyError
from codeswitch_lm.lm.kneser_ney import SingleLanguageModel
from codeswitch_lm.normalize.stages import SPACE
from codeswitch_lm.symbols import SymbolTable

DEFAULT_WORD_SEPARATORS = (SPACE,)


@dataclass(frozen=True)
class LanguageComponent:
    """A fitted language model with its (unnormalized) prior weight."""

    model: SingleLanguageModel
    prior: float


class CodeSwitchModel:
    """Generative model over (language, character) sequences.

    The latent language may only change on the first character after a word
    separator. Characters are emitted by the active language's model
    conditioned on the running context, which is not reset on a switch.
    ``use_long_s`` and ``keep_diacritics`` record how training text was
    normalized so scorers can rebuild the same pipeline. Build instances with
    :meth:`compose`.
    """

    def __init__(
        self,
        components: Mapping[str, LanguageComponent],
        symbol_table: SymbolTable,
        p_keep_same_language: float,
        order: int,
        word_separators: Iterable[str] = DEFAULT_WORD_SEPARATORS,
        *,
        use_long_s: bool = False,
        keep_diacritics: bool = True,
    ) -> None:
        self.components: dict[str, LanguageComponent] = dict(components)
        self.symbol_table = symbol_table
        self.p_keep_same_language = float(p_keep_same_language)
        self.order = order
        self.word_separators: tuple[str, ...] = tuple(word_separators)
        self.use_long_s = use_long_s
        self.keep_diacritics = keep_diacritics
        self._separator_ids = frozenset(
            symbol_table.id_of(token) for token in self.word_separators if token in symbol_table
        )
        self.languages: tuple[str, ...] = tuple(self.components)
        total = sum(component.prior for component in self.components.values())
        self._priors = np.array(
            [self.components[language].prior / total for language in self.languages],
            dtype=np.float64,
        )
        self._transitions = self._build_transitions()

    @classmethod
    def compose(
        cls,
        language_models: Mapping[str, tuple[SingleLanguageModel, float]],
        symbol_table: SymbolTable,
        p_keep_same_language: float,
        order: int,
        *,
        word_separators: Iterable[str] = DEFAULT_WORD_SEPARATORS,
        use_long_s: bool = False,
        keep_diacritics: bool = True,
    ) -> CodeSwitchModel:
        """Validate sub-models and priors, then build the composed model."""
        if not language_models:
            raise InvalidPriorError("at least one language model is required")
        if not 0.0 <= p_keep_same_language <= 1.0:
            raise InvalidPriorError(f"p_keep_same_language must lie in [0, 1], got {p_keep_same_language}")
        if order < 1:
            raise ValueError(f"n-gram order must be at least 1, got {order}")
        if not symbol_table.locked:
            raise MismatchedVocabularyError("symbol table must be locked before composition")

        components: dict[str, LanguageComponent] = {}
        for language, (model, prior) in language_models.items():
            if not math.isfinite(prior) or prior < 0:
                raise InvalidPriorError(f"prior for language {language!r} must be non-negative, got {prior}")
            if model.symbol_table is not symbol_table:
                raise MismatchedVocabularyError(
                    f"language {language!r} was fit against a different symbol table"
                )
            if model.order != order:
                raise MismatchedVocabularyError(
                    f"language {language!r} has n-gram order {model.order}, expected {order}"
                )
            components[language] = LanguageComponent(model=model, prior=float(prior))

        if sum(component.prior for component in components.values()) <= 0:
            raise InvalidPriorError("language priors must not all be zero")
        return cls(
            components,
            symbol_table,
            p_keep_same_language,
            order,
            word_separators,
            use_long_s=use_long_s,
            keep_diacritics=keep_diacritics,
        )

    def prior(self, language: str) -> float:
        """Normalized prior of ``language``."""
        return float(self._priors[self.languages.index(language)])

    def sub_model(self, language: str) -> SingleLanguageModel:
        return self.components[language].model

    def is_word_boundary(self, symbol: int) -> bool:
        return symbol in self._separator_ids

    def starts_word(self, context: Sequence[int]) -> bool:
        """Whether the next symbol begins a word (and may switch language)."""
        return not len(context) or self.is_word_boundary(int(context[-1]))

    def transition_probability(self, previous: str | None, current: str, *, at_boundary: bool) -> float:
        """P(current language | previous language).

        With no previous language the normalized prior is used.
        """
        target = self.languages.index(current)
        if previous is None:
            return float(self._priors[target])
        source = self.languages.index(previous)
        if not at_boundary:
            return 1.0 if source == target else 0.0
        return float(self._transitions[source, target])

    def transition_matrix(self) -> np.ndarray:
        """Boundary transition matrix indexed like :attr:`languages`."""
        return self._transitions.copy()

    def initial_distribution(self) -> np.ndarray:
        return self._priors.copy()

    def score_next(
        self,
        context: Sequence[int],
        symbol: int,
        language: str,
        previous_language: str | None = None,
    ) -> float:
        """Joint probability of moving into ``language`` and emitting ``symbol``."""
        at_boundary = self.starts_word(context)
        transition = self.transition_probability(previous_language, language, at_boundary=at_boundary)
        if transition == 0.0:
            return 0.0
        return transition * self.sub_model(language).score_next(context, symbol)

    def _build_transitions(self) -> np.ndarray:
        count = len(self.languages)
        transitions = np.zeros((count, count), dtype=np.float64)
        for source in range(count):
            others = self._priors.sum() - self._priors[source]
            if others <= 0:
                transitions[source, source] = 1.0
                continue
            for target in range(count):
                if target == source:
                    transitions[source, target] = self.p_keep_same_language
                else:
                    share = self._priors[target] / others
                    transitions[source, target] = (1.0 - self.p_keep_same_language) * share
        return transitions

    def __repr__(self) -> str:
        return (
            f"CodeSwitchModel(languages={list(self.languages)}, order={self.order}, "
            f"p_keep_same_language={self.p_keep_same_language})"
        )
