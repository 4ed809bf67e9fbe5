"""Shared fixtures: small corpora and models built from them."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping

import pytest

from codeswitch_lm.lm import CodeSwitchModel, NgramCounter, SingleLanguageModel
from codeswitch_lm.normalize import SPACE, tokenize
from codeswitch_lm.symbols import SymbolTable

EN_TEXT = ["ab ab ba", "abba ab"]
XX_TEXT = ["cd dc cd", "dccd cd"]


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def count_lines(table: SymbolTable, lines: list[str], order: int) -> NgramCounter:
    counter = NgramCounter(table, order)
    for line in lines:
        counter.add([*tokenize(line), SPACE])
    return counter


ModelFactory = Callable[..., CodeSwitchModel]


@pytest.fixture
def make_model() -> ModelFactory:
    def factory(
        corpora: Mapping[str, list[str]] | None = None,
        *,
        order: int = 3,
        power: float = 1.0,
        p_keep_same_language: float = 0.5,
        priors: Mapping[str, float] | None = None,
        use_long_s: bool = False,
        keep_diacritics: bool = True,
    ) -> CodeSwitchModel:
        resolved = corpora or {"en": EN_TEXT, "xx": XX_TEXT}
        table = SymbolTable()
        counts = {language: count_lines(table, lines, order).counts() for language, lines in resolved.items()}
        table.lock()
        models = {
            language: (
                SingleLanguageModel.fit(table, language_counts, power=power),
                (priors or {}).get(language, 1.0),
            )
            for language, language_counts in counts.items()
        }
        return CodeSwitchModel.compose(
            models,
            table,
            p_keep_same_language,
            order,
            use_long_s=use_long_s,
            keep_diacritics=keep_diacritics,
        )

    return factory
