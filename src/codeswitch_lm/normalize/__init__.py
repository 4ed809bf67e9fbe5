"""Text normalization stages and pipelines."""

from codeswitch_lm.normalize.base import NormalizedLine, TextStage
from codeswitch_lm.normalize.pipeline import TextNormalizationPipeline, build_pipeline
from codeswitch_lm.normalize.rules import NormalizationRule, load_rules
from codeswitch_lm.normalize.stages import LONG_S, SPACE, tokenize

__all__ = [
    "LONG_S",
    "SPACE",
    "NormalizationRule",
    "NormalizedLine",
    "TextNormalizationPipeline",
    "TextStage",
    "build_pipeline",
    "load_rules",
    "tokenize",
]
