"""Document interfaces shared with the image-side decoder.

Line images come from an external pipeline; this module only fixes their
shape and loads the optional ground-truth text that sits next to an image.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Protocol

from codeswitch_lm.errors import MissingResourceError
from codeswitch_lm.io.corpus import CORPUS_ENCODING
from codeswitch_lm.normalize import TextNormalizationPipeline

logger = logging.getLogger(__name__)


class LineDocument(Protocol):
    """A document split into text lines by the image pipeline."""

    def base_name(self) -> str:
        """Stable identifier of the document (usually its path)."""

    def load_line_images(self) -> list[Any]:
        """Per-line 2-D arrays of pixel classes, computed on first access."""

    def load_line_text(self) -> list[list[str]] | None:
        """Ground-truth tokens per line, or ``None`` when unavailable."""


class TextFileDocument:
    """Ground-truth side of a document image.

    Evaluation text is read lazily from ``<image stem>.txt`` beside the image
    and cached after the first load. Line images are whatever the image
    pipeline handed in; a document built without them has none to load.
    """

    def __init__(
        self,
        image_path: str | Path,
        *,
        pipeline: TextNormalizationPipeline | None = None,
        line_images: list[Any] | None = None,
    ) -> None:
        self.image_path = Path(image_path)
        self.pipeline = pipeline or TextNormalizationPipeline()
        self._line_images = line_images
        self._text: list[list[str]] | None = None
        self._text_loaded = False

    @property
    def text_path(self) -> Path:
        return self.image_path.with_suffix(".txt")

    def base_name(self) -> str:
        return str(self.image_path)

    def load_line_images(self) -> list[Any]:
        if self._line_images is None:
            raise MissingResourceError(self.image_path, what="line images")
        return self._line_images

    def load_line_text(self) -> list[list[str]] | None:
        if not self._text_loaded:
            self._text_loaded = True
            if self.text_path.is_file():
                logger.info("Evaluation text found at %s", self.text_path)
                lines = self.text_path.read_text(encoding=CORPUS_ENCODING).splitlines()
                self._text = [self.pipeline.normalize_tokens(line) for line in lines]
            else:
                logger.info("No evaluation text found at %s", self.text_path)
        return self._text
