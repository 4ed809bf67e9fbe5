"""Per-language text normalization pipeline."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from codeswitch_lm.normalize.base import NormalizedLine, TextStage
from codeswitch_lm.normalize.rules import NormalizationRule, RuleReplacementStage, load_rules
from codeswitch_lm.normalize.stages import LongSStage, StripDiacriticsStage, tokenize


class TextNormalizationPipeline:
    """Tokenize a line, then apply the configured stages in fixed order.

    Order: long-s, diacritic stripping, rule replacement.
    """

    def __init__(
        self,
        *,
        use_long_s: bool = False,
        keep_diacritics: bool = True,
        rules: Sequence[NormalizationRule] | None = None,
    ) -> None:
        self.use_long_s = use_long_s
        self.keep_diacritics = keep_diacritics
        self.rules: tuple[NormalizationRule, ...] = tuple(rules or ())
        stages: list[TextStage] = []
        if use_long_s:
            stages.append(LongSStage())
        if not keep_diacritics:
            stages.append(StripDiacriticsStage())
        if rules is not None:
            stages.append(RuleReplacementStage(self.rules))
        self.stages: tuple[TextStage, ...] = tuple(stages)

    @property
    def normalizer_id(self) -> str:
        return "+".join(["tokenize", *(stage.name for stage in self.stages)])

    def normalize_tokens(self, line: str) -> list[str]:
        tokens = tokenize(line)
        for stage in self.stages:
            tokens = stage(tokens)
        return tokens

    def normalize(self, line: str) -> NormalizedLine:
        return NormalizedLine(original=line, tokens=self.normalize_tokens(line))

    def __repr__(self) -> str:
        return f"TextNormalizationPipeline({self.normalizer_id})"


def build_pipeline(
    *,
    use_long_s: bool = False,
    keep_diacritics: bool = True,
    rules_path: str | Path | None = None,
    language: str | None = None,
) -> TextNormalizationPipeline:
    """Build a language's pipeline from its configuration values."""
    rules = load_rules(rules_path, language=language) if rules_path is not None else None
    return TextNormalizationPipeline(
        use_long_s=use_long_s,
        keep_diacritics=keep_diacritics,
        rules=rules,
    )
