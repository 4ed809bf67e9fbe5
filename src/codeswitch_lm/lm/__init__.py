"""Character language models: counting, smoothing and code-switch composition."""

from codeswitch_lm.lm.codeswitch import CodeSwitchModel, LanguageComponent
from codeswitch_lm.lm.counts import NgramCounter, NgramCounts
from codeswitch_lm.lm.kneser_ney import SingleLanguageModel
from codeswitch_lm.lm.trellis import (
    LanguageSpan,
    forward_log_likelihood,
    language_spans,
    viterbi_language_path,
)

__all__ = [
    "CodeSwitchModel",
    "LanguageComponent",
    "LanguageSpan",
    "NgramCounter",
    "NgramCounts",
    "SingleLanguageModel",
    "forward_log_likelihood",
    "language_spans",
    "viterbi_language_path",
]
