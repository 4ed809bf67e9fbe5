"""Corpus file discovery and line streaming."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

from codeswitch_lm.errors import CorpusDecodeError, MissingResourceError

CORPUS_ENCODING = "utf-8"


def corpus_files(corpus_path: str | Path, *, language: str | None = None) -> list[Path]:
    """Return the files of a corpus path, walking directories recursively.

    Directory contents come back in sorted order and hidden entries are
    skipped.
    """
    path = Path(corpus_path)
    if path.is_file():
        return [path]
    if not path.is_dir():
        raise MissingResourceError(path, what="corpus path", language=language)
    return [
        candidate
        for candidate in sorted(path.rglob("*"))
        if candidate.is_file()
        and not any(part.startswith(".") for part in candidate.relative_to(path).parts)
    ]


def iter_corpus_lines(
    corpus_path: str | Path,
    *,
    language: str | None = None,
    max_lines: int | None = None,
) -> Iterator[str]:
    """Yield raw lines (without line terminators) until ``max_lines`` is reached.

    Undecodable bytes raise :class:`CorpusDecodeError` naming the file and the
    first line that could not be read.
    """
    if max_lines is not None and max_lines <= 0:
        return
    emitted = 0
    for file_path in corpus_files(corpus_path, language=language):
        line_number = 0
        with file_path.open("r", encoding=CORPUS_ENCODING) as handle:
            try:
                for raw_line in handle:
                    line_number += 1
                    yield raw_line.rstrip("\r\n")
                    emitted += 1
                    if max_lines is not None and emitted >= max_lines:
                        return
            except UnicodeDecodeError as exc:
                raise CorpusDecodeError(file_path, line_number + 1, str(exc), language=language) from exc
