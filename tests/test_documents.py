from pathlib import Path

import pytest

from codeswitch_lm.errors import CorpusDecodeError, MissingResourceError
from codeswitch_lm.io import TextFileDocument, corpus_files, iter_corpus_lines
from codeswitch_lm.normalize import TextNormalizationPipeline


def test_corpus_files_walks_directories_in_sorted_order(tmp_path: Path) -> None:
    (tmp_path / "b").mkdir()
    (tmp_path / "b" / "2.txt").write_text("two\n", encoding="utf-8")
    (tmp_path / "a.txt").write_text("one\n", encoding="utf-8")
    (tmp_path / ".git").mkdir()
    (tmp_path / ".git" / "HEAD").write_text("ref\n", encoding="utf-8")

    files = corpus_files(tmp_path)

    assert [path.relative_to(tmp_path).as_posix() for path in files] == ["a.txt", "b/2.txt"]
    assert corpus_files(tmp_path / "a.txt") == [tmp_path / "a.txt"]


def test_corpus_files_missing_path(tmp_path: Path) -> None:
    with pytest.raises(MissingResourceError) as excinfo:
        corpus_files(tmp_path / "absent", language="latin")

    assert excinfo.value.language == "latin"


def test_iter_corpus_lines_respects_max_lines_across_files(tmp_path: Path) -> None:
    (tmp_path / "1.txt").write_text("a\r\nb\n", encoding="utf-8")
    (tmp_path / "2.txt").write_text("c\nd\n", encoding="utf-8")

    assert list(iter_corpus_lines(tmp_path)) == ["a", "b", "c", "d"]
    assert list(iter_corpus_lines(tmp_path, max_lines=3)) == ["a", "b", "c"]
    assert list(iter_corpus_lines(tmp_path, max_lines=0)) == []


def test_text_file_document_loads_sibling_text_once(tmp_path: Path) -> None:
    image = tmp_path / "page_001.png"
    (tmp_path / "page_001.txt").write_text("Ye olde  ſhoppe\nſecond\n", encoding="utf-8")
    document = TextFileDocument(image, pipeline=TextNormalizationPipeline(keep_diacritics=False))

    first = document.load_line_text()
    (tmp_path / "page_001.txt").unlink()

    assert document.base_name() == str(image)
    assert first is not None
    assert "".join(first[0]) == "Ye olde ſhoppe"
    assert len(first) == 2
    assert document.load_line_text() is first


def test_text_file_document_without_text(tmp_path: Path) -> None:
    document = TextFileDocument(tmp_path / "page_002.png")

    assert document.load_line_text() is None


def test_line_images_come_from_the_image_pipeline(tmp_path: Path) -> None:
    bare = TextFileDocument(tmp_path / "page.png")
    with pytest.raises(MissingResourceError, match="line images not found"):
        bare.load_line_images()

    images = [[[0, 1], [1, 0]]]
    assert TextFileDocument(tmp_path / "page.png", line_images=images).load_line_images() is images


def test_undecodable_corpus_names_language_and_file(tmp_path: Path) -> None:
    corpus = tmp_path / "latin.txt"
    corpus.write_bytes(b"ab\n\xff\xfe\n")

    with pytest.raises(CorpusDecodeError) as excinfo:
        list(iter_corpus_lines(corpus, language="latin"))

    assert excinfo.value.language == "latin"
    assert excinfo.value.path == corpus
    assert str(corpus) in str(excinfo.value)
