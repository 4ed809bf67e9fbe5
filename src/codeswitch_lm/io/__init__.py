"""I/O utilities."""

from codeswitch_lm.io.artifact import from_artifact, load_model, save_model, to_artifact
from codeswitch_lm.io.corpus import corpus_files, iter_corpus_lines
from codeswitch_lm.io.documents import LineDocument, TextFileDocument
from codeswitch_lm.io.export import to_json, write_json

__all__ = [
    "LineDocument",
    "TextFileDocument",
    "corpus_files",
    "from_artifact",
    "iter_corpus_lines",
    "load_model",
    "save_model",
    "to_artifact",
    "to_json",
    "write_json",
]
