"""
vision.py - Vision-model extraction strategy.

Drop-in alternative to OCR + regex analysis: page images go to a local
Ollama vision model, which is asked for the six fields directly as JSON.
The reply is then normalized into the same `AnalysisResult` contract the
regex engine produces, so callers cannot tell the strategies apart except by
the `raw_text` marker.

Error philosophy:
- A reply that is not a JSON object is treated as `{}`; every field then
  takes its own fallback and the result is all low confidence.
- Transport failures (server down, HTTP error) raise RuntimeError. Callers
  handle those per document.
"""

from __future__ import annotations

import base64
import io
import json
import re
import time
from datetime import date
from pathlib import Path
from typing import Any, Optional, Sequence

import requests
from dateutil import parser as dateparser
from PIL import Image, ImageOps
from rapidfuzz import fuzz, process, utils

from classify import DOC_TYPE_NAMES, OTHER_DOC_TYPE, VENDOR_RULES
from config import env_float, env_str
from logging_config import get_logger
from models import DATE_VALUE_RE, DESCRIPTION_MAX_CHARS, AnalysisResult, FieldValue
from normalize import today_dotted

logger = get_logger(__name__)

DEFAULT_OLLAMA_URL = "http://127.0.0.1:11434"
DEFAULT_VISION_MODEL = "llama3.2-vision:11b"
DEFAULT_VISION_TIMEOUT = 300.0
HEALTH_TIMEOUT = 3.0

MAX_IMAGE_WIDTH = 2048
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".heic", ".webp", ".tiff", ".tif", ".bmp"}

RAW_TEXT_MARKER = "[LLM Vision Analysis]"
NULL_WORDS = {"", "null", "none", "n/a", "na"}
VENDOR_FUZZY_CUTOFF = 90

PROMPT = f"""You are a document analysis assistant for a maintenance purchasing department.
Analyze this scanned business document image and extract the following fields.
Return ONLY a valid JSON object - no explanation, no markdown, no code fences.

Fields:
- vendor: The seller/company name (e.g. "Grainger", "Amazon", "Home Depot", "McMaster-Carr", "Uline", "Fastenal", "Linde", "Cleanova", "Motion Industries")
- docType: Exactly one of: {", ".join(f'"{name}"' for name in DOC_TYPE_NAMES)}
- date: The document date in YYYY.MM.DD format (e.g. "2026.02.11")
- poNumber: Purchase order number if visible (include "PO" prefix, e.g. "PO00044162"), or null
- partNumber: A part/catalog/item number if visible, or null
- description: Brief comma-separated list of items on the document (max {DESCRIPTION_MAX_CHARS} characters). Focus on product names, not quantities or prices.

Example output:
{{"vendor":"Grainger","docType":"Packing_Slips","date":"2026.02.06","poNumber":"PO00044162","partNumber":null,"description":"Ice Scraper, 50ft Ext Cord, Dust Pan, Starting Fluid"}}"""

MULTIPAGE_PREFIX = "These {count} images are pages of the SAME document. Analyze them together as one document.\n\n"

# Exact spellings the model tends to return.
VENDOR_ALIASES: dict[str, str] = {
    "grainger": "Grainger",
    "w.w. grainger": "Grainger",
    "w.w.grainger": "Grainger",
    "amazon": "Amazon",
    "amazon.com": "Amazon",
    "home depot": "Home_Depot",
    "the home depot": "Home_Depot",
    "homedepot": "Home_Depot",
    "mcmaster": "McMaster_Carr",
    "mcmaster-carr": "McMaster_Carr",
    "mcmaster carr": "McMaster_Carr",
    "uline": "Uline",
    "fastenal": "Fastenal",
    "linde": "Linde",
    "cleanova": "Cleanova",
    "motion industries": "Motion_Industries",
}

_VENDOR_KEYWORDS: dict[str, str] = {
    keyword: rule.label for rule in VENDOR_RULES for keyword in rule.keywords
}


def _ollama_url() -> str:
    return env_str("OLLAMA_URL", DEFAULT_OLLAMA_URL).rstrip("/")


def _vision_model() -> str:
    return env_str("VISION_MODEL", DEFAULT_VISION_MODEL)


def prepare_image_b64(path: Path) -> str:
    """Base64 PNG of the page, downscaled when wider than MAX_IMAGE_WIDTH.

    Non-image files are sent as-is.
    """
    if path.suffix.lower() not in IMAGE_EXTENSIONS:
        return base64.b64encode(path.read_bytes()).decode("ascii")

    try:
        with Image.open(path) as img:
            image = ImageOps.exif_transpose(img).convert("RGB")
    except OSError as exc:
        logger.warning("vision_prep_failed | file=%s | error=%s | fallback=raw_bytes", path.name, exc)
        return base64.b64encode(path.read_bytes()).decode("ascii")

    width = image.size[0]
    if width > MAX_IMAGE_WIDTH:
        image.thumbnail((MAX_IMAGE_WIDTH, MAX_IMAGE_WIDTH * 10), Image.Resampling.LANCZOS)
    # Light contrast boost helps with phone photos of receipts.
    image = ImageOps.autocontrast(image, cutoff=1)

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    logger.debug("vision_prep | file=%s | width=%s | out_width=%s", path.name, width, image.size[0])
    return base64.b64encode(buffer.getvalue()).decode("ascii")


def is_vision_available() -> bool:
    """True when the Ollama server answers and has a llama3.2-vision model pulled."""
    try:
        response = requests.get(f"{_ollama_url()}/api/tags", timeout=HEALTH_TIMEOUT)
        if not response.ok:
            return False
        models = response.json().get("models") or []
    except (requests.RequestException, ValueError, AttributeError) as exc:
        logger.info("vision_health | available=False | error=%s", exc)
        return False

    names = [str(model.get("name", "")) for model in models if isinstance(model, dict)]
    logger.info("vision_health | models=%s", ", ".join(names) or "-")
    return any("llama3.2-vision" in name for name in names)


def _normalize_vendor(raw: str) -> str:
    if not raw:
        return ""
    alias = VENDOR_ALIASES.get(raw.lower())
    if alias:
        return alias

    match = process.extractOne(
        raw,
        list(_VENDOR_KEYWORDS),
        scorer=fuzz.token_set_ratio,
        processor=utils.default_process,
        score_cutoff=VENDOR_FUZZY_CUTOFF,
    )
    if match is not None:
        keyword, score, _ = match
        logger.debug("vision_vendor_fuzzy | raw=%r | keyword=%r | score=%.0f", raw, keyword, score)
        return _VENDOR_KEYWORDS[keyword]

    return re.sub(r"\s+", "_", raw)


def _normalize_date(raw: str, today: Optional[date]) -> FieldValue:
    if DATE_VALUE_RE.match(raw):
        return FieldValue.high(raw)
    if raw:
        try:
            parsed = dateparser.parse(raw)
        except (ValueError, OverflowError) as exc:
            logger.debug("vision_date_unparsed | raw=%r | error=%s", raw, exc)
            parsed = None
        if parsed is not None and 1900 <= parsed.year <= 2199:
            return FieldValue.low(parsed.strftime("%Y.%m.%d"))
    return FieldValue.low(today_dotted(today))


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if text.lower() in NULL_WORDS:
        return None
    return text


def parse_response(content: Optional[str], today: Optional[date] = None) -> AnalysisResult:
    """Normalize a vision-model reply into an AnalysisResult."""
    try:
        parsed = json.loads(content or "")
    except (json.JSONDecodeError, TypeError):
        logger.error("vision_parse_failed | content=%r | fallback={}", content)
        parsed = {}
    if not isinstance(parsed, dict):
        logger.error("vision_parse_not_object | type=%s | fallback={}", type(parsed).__name__)
        parsed = {}

    vendor = _normalize_vendor(_optional_text(parsed.get("vendor")) or "")

    raw_doc_type = _optional_text(parsed.get("docType")) or ""
    if raw_doc_type in DOC_TYPE_NAMES:
        doc_type = FieldValue.high(raw_doc_type)
    else:
        doc_type = FieldValue.low(OTHER_DOC_TYPE)

    doc_date = _normalize_date(_optional_text(parsed.get("date")) or "", today)

    po_digits = re.sub(r"[^0-9]", "", _optional_text(parsed.get("poNumber")) or "")
    po_number = FieldValue.high(f"PO{po_digits}") if po_digits else FieldValue.low(None)

    part = _optional_text(parsed.get("partNumber"))

    description = _optional_text(parsed.get("description")) or ""
    had_description = bool(description)
    if len(description) > DESCRIPTION_MAX_CHARS:
        description = description[: DESCRIPTION_MAX_CHARS - 3] + "..."

    return AnalysisResult(
        vendor=FieldValue.high(vendor) if vendor else FieldValue.low(""),
        doc_type=doc_type,
        date=doc_date,
        po_number=po_number,
        part_number=FieldValue.high(part) if part else FieldValue.low(None),
        description=FieldValue.high(description) if had_description else FieldValue.low(""),
        raw_text=f"{RAW_TEXT_MARKER}\n{json.dumps(parsed, indent=2)}",
    )


class VisionExtractor:
    """Extraction strategy backed by an Ollama vision model."""

    name = "vision"

    def __init__(
        self,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.base_url = (base_url or _ollama_url()).rstrip("/")
        self.model = model or _vision_model()
        self.timeout = timeout or env_float("VISION_TIMEOUT", DEFAULT_VISION_TIMEOUT)

    def _chat(self, prompt: str, images: list[str]) -> str:
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt, "images": images}],
            "stream": False,
            "format": "json",
            "options": {
                "temperature": 0.1,
                "num_predict": 512,
            },
        }
        try:
            response = requests.post(f"{self.base_url}/api/chat", json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            raise RuntimeError(f"Ollama request failed: {exc}") from exc

        if not response.ok:
            raise RuntimeError(f"Ollama error {response.status_code}: {response.text}")

        try:
            data = response.json()
        except ValueError:
            data = {}
        message = data.get("message") if isinstance(data, dict) else None
        return (message or {}).get("content") or "{}"

    def analyze_pages(self, pages: Sequence[Path]) -> AnalysisResult:
        """Send all pages of one document to the model and normalize the reply."""
        if not pages:
            raise ValueError("analyze_pages needs at least one page")

        images = [prepare_image_b64(Path(page)) for page in pages]
        prompt = PROMPT
        if len(images) > 1:
            prompt = MULTIPAGE_PREFIX.format(count=len(images)) + PROMPT

        logger.info("vision_request | model=%s | pages=%s", self.model, len(images))
        start = time.perf_counter()
        content = self._chat(prompt, images)
        logger.info(
            "vision_response | seconds=%.1f | chars=%s",
            time.perf_counter() - start,
            len(content),
        )
        logger.debug("vision_response_raw | content=%r", content)
        return parse_response(content)
