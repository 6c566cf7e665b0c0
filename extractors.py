"""
extractors.py - Interchangeable document extraction strategies.

Both strategies take the staged page files of ONE document and return an
`AnalysisResult`:

    ocr     Tesseract per page -> pages joined with PAGE_BREAK -> analyze_text
    vision  all pages -> Ollama vision model -> parse_response

The strategy is picked by the caller or by the DOC_ANALYZER environment
variable; nothing downstream special-cases either one.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Protocol, Sequence

from analyze import analyze_text
from config import env_str
from logging_config import get_logger
from models import AnalysisResult
from normalize import combine_pages
from ocr import extract_text
from vision import VisionExtractor

logger = get_logger(__name__)

DEFAULT_MODE = "ocr"


class DocumentExtractor(Protocol):
    name: str

    def analyze_pages(self, pages: Sequence[Path]) -> AnalysisResult:
        ...


class OcrExtractor:
    """Recognize each page with Tesseract, then run the regex engine."""

    name = "ocr"

    def recognize(self, pages: Sequence[Path]) -> str:
        texts = []
        for index, page in enumerate(pages, start=1):
            logger.info("ocr_page | page=%s | file=%s", index, Path(page).name)
            texts.append(extract_text(page))
        return combine_pages(texts)

    def analyze_pages(self, pages: Sequence[Path]) -> AnalysisResult:
        if not pages:
            raise ValueError("analyze_pages needs at least one page")
        return analyze_text(self.recognize(pages))


EXTRACTORS = {
    OcrExtractor.name: OcrExtractor,
    VisionExtractor.name: VisionExtractor,
}


def get_extractor(mode: Optional[str] = None) -> DocumentExtractor:
    """Return the extraction strategy for `mode` (default: $DOC_ANALYZER or "ocr")."""
    selected = (mode or env_str("DOC_ANALYZER", DEFAULT_MODE)).strip().lower()
    factory = EXTRACTORS.get(selected)
    if factory is None:
        raise ValueError(
            f"Unknown extraction mode {selected!r}; expected one of: {', '.join(sorted(EXTRACTORS))}"
        )
    logger.debug("extractor_selected | mode=%s", selected)
    return factory()
