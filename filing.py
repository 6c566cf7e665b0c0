"""
filing.py - Rename, route and archive confirmed documents.

Runs only after a reviewer has confirmed or corrected the extracted fields.
For each `FilingItem`:

1. Build the base name: "date - vendor - description - For X - part - PO"
   (empty parts are skipped).
2. Route: packing slips go to a per-vendor folder, everything else to its
   document-type folder under the output root.
3. Move every staged page; multi-page documents get " - Page N" suffixes
   and name clashes get " (2)", " (3)", ...
4. Append one audit record to audit.jsonl.

The folder set is derived from the shared enumeration in classify.py.
"""

from __future__ import annotations

import json
import re
import shutil
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Optional, Union

from classify import (
    DOC_TYPE_NAMES,
    OTHER_DOC_TYPE,
    PACKING_SLIPS,
    doc_type_from_filename,
    vendor_from_filename,
)
from config import env_str
from logging_config import get_logger
from models import FilingItem, FilingOutcome

logger = get_logger(__name__)

DEFAULT_OUTPUT_DIR = "output"
DEFAULT_LOG_DIR = "logs"
AUDIT_LOG_NAME = "audit.jsonl"
NAME_SEPARATOR = " - "
MULTIPAGE_NAME_JOINER = " + "

ROUTABLE_DOC_TYPES = set(DOC_TYPE_NAMES) | {OTHER_DOC_TYPE}

_UNSAFE_NAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
_WHITESPACE_RUN = re.compile(r"\s+")

PathLike = Union[str, Path]


def output_root() -> Path:
    return Path(env_str("OUTPUT_DIR", DEFAULT_OUTPUT_DIR)).resolve()


def log_root() -> Path:
    return Path(env_str("LOG_DIR", DEFAULT_LOG_DIR)).resolve()


def safe_name_part(value: str) -> str:
    """Strip characters that are not allowed in file names."""
    cleaned = _UNSAFE_NAME_CHARS.sub("", value or "")
    return _WHITESPACE_RUN.sub(" ", cleaned).strip(" .")


def build_base_name(item: FilingItem) -> str:
    """Date - Vendor - Description - For X - Part# - PO#, skipping empty parts."""
    parts = [item.date, item.vendor]
    if item.description:
        parts.append(item.description)
    if item.requested_by:
        parts.append(f"For {item.requested_by}")
    if item.part_number:
        parts.append(item.part_number)
    if item.po_number:
        parts.append(item.po_number)
    return NAME_SEPARATOR.join(p for p in (safe_name_part(part) for part in parts) if p)


def target_dir_for(doc_type: str, vendor: str, root: Optional[PathLike] = None) -> Path:
    """Destination folder for a confirmed document.

    Raises:
        ValueError: `doc_type` is not part of the shared enumeration.
    """
    if doc_type not in ROUTABLE_DOC_TYPES:
        raise ValueError(
            f"Unknown document type {doc_type!r}; expected one of: {', '.join(sorted(ROUTABLE_DOC_TYPES))}"
        )
    base = Path(root) if root is not None else output_root()
    if doc_type == PACKING_SLIPS:
        return base / f"{PACKING_SLIPS}_{safe_name_part(vendor) or 'Unknown'}"
    return base / doc_type


def unique_target(target_dir: Path, name: str, ext: str) -> Path:
    """First free path among name.ext, name (2).ext, name (3).ext, ..."""
    candidate = target_dir / f"{name}{ext}"
    counter = 2
    while candidate.exists():
        candidate = target_dir / f"{name} ({counter}){ext}"
        counter += 1
    return candidate


def _original_ext(item: FilingItem) -> str:
    first_name = item.original_name.split(MULTIPAGE_NAME_JOINER)[0] or item.original_name
    return Path(first_name).suffix or Path(item.temp_file).suffix


def append_audit(record: dict, log_dir: Optional[PathLike] = None) -> Path:
    """Append one JSON line to the audit log and return its path."""
    directory = Path(log_dir) if log_dir is not None else log_root()
    directory.mkdir(parents=True, exist_ok=True)
    audit_path = directory / AUDIT_LOG_NAME
    with audit_path.open("a", encoding="utf-8") as handle:
        handle.write(json.dumps(record, ensure_ascii=False) + "\n")
    return audit_path


def file_document(
    item: FilingItem,
    upload_dir: PathLike,
    output_dir: Optional[PathLike] = None,
    log_dir: Optional[PathLike] = None,
) -> FilingOutcome:
    """Move one confirmed document into place and audit it.

    Never raises; failures come back as `success=False` so one bad item does
    not abort a batch.
    """
    try:
        pages = item.pages
        ext = _original_ext(item)
        base_name = build_base_name(item)
        if not base_name:
            raise ValueError("Cannot build a file name: date and vendor are both empty")

        target_dir = target_dir_for(item.doc_type, item.vendor, output_dir)
        target_dir.mkdir(parents=True, exist_ok=True)

        moved: list[str] = []
        for page_number, temp_name in enumerate(pages, start=1):
            source = Path(upload_dir) / Path(temp_name).name
            if not source.exists():
                raise FileNotFoundError(f"Staged upload not found: {source}")

            page_name = base_name if len(pages) == 1 else f"{base_name} - Page {page_number}"
            destination = unique_target(target_dir, page_name, ext)
            shutil.move(str(source), str(destination))
            moved.append(destination.name)
            logger.info("filing_moved | source=%s | target=%s", source.name, destination)

        new_name = ", ".join(moved)
        append_audit(
            {
                "ts": datetime.now(timezone.utc).isoformat(),
                "source": item.original_name,
                "target": new_name,
                "targetDir": str(target_dir),
                "pages": len(pages),
                "vendor": item.vendor,
                "docType": item.doc_type,
                "date": item.date,
                "description": item.description,
                "partNumber": item.part_number,
                "poNumber": item.po_number,
                "requestedBy": item.requested_by,
            },
            log_dir,
        )
        return FilingOutcome(
            original_name=item.original_name,
            new_name=new_name,
            target_dir=str(target_dir),
            success=True,
        )
    except (OSError, ValueError) as exc:
        logger.error(
            "filing_failed | source=%s | error_type=%s | error=%s",
            item.original_name,
            type(exc).__name__,
            exc,
            exc_info=True,
        )
        return FilingOutcome(original_name=item.original_name, success=False, error=str(exc))


def file_batch(
    items: list[FilingItem],
    upload_dir: PathLike,
    output_dir: Optional[PathLike] = None,
    log_dir: Optional[PathLike] = None,
) -> list[FilingOutcome]:
    outcomes = [file_document(item, upload_dir, output_dir, log_dir) for item in items]
    logger.info(
        "filing_batch_complete | items=%s | succeeded=%s",
        len(outcomes),
        sum(1 for outcome in outcomes if outcome.success),
    )
    return outcomes


def plan_intake(intake_dir: PathLike, today: Optional[date] = None) -> list[tuple[str, str]]:
    """Dry run: where would each intake file be filed, judging by its name only?

    Returns (file name, relative target path) pairs in name order.
    """
    directory = Path(intake_dir)
    if not directory.is_dir():
        raise FileNotFoundError(f"Intake folder not found: {intake_dir}")

    stamp = (today or date.today()).isoformat()
    plan: list[tuple[str, str]] = []
    for path in sorted(p for p in directory.iterdir() if p.is_file()):
        vendor = vendor_from_filename(path.name)
        doc_type = doc_type_from_filename(path.name)
        target_name = f"{stamp}{NAME_SEPARATOR}{vendor}{NAME_SEPARATOR}{path.stem}{path.suffix}"
        plan.append((path.name, str(Path(doc_type) / target_name)))
    return plan
