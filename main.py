"""
main.py - CLI for the document filing assistant.

Commands:
    analyze PATH [PATH ...]   extract fields from .txt (already recognized)
                              or image files
    plan INTAKE_DIR           dry run: where would each file be filed?

Examples:
    python main.py analyze slip.jpg
    python main.py analyze page1.png page2.png --multipage --json
    python main.py analyze ocr_dump.txt --verbose
    python main.py plan example/intake
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from analyze import analyze_text
from config import env_flag
from extractors import EXTRACTORS, get_extractor
from filing import plan_intake
from logging_config import get_logger, setup_logging
from models import AnalysisResult
from normalize import combine_pages

logger = get_logger("doc-filer")

TEXT_SUFFIXES = {".txt", ".text"}
FIELD_LABELS = [
    ("vendor", "Vendor"),
    ("doc_type", "Document type"),
    ("date", "Date"),
    ("po_number", "PO number"),
    ("part_number", "Part number"),
    ("description", "Description"),
]


def _configure_output_symbols() -> tuple[str, str]:
    """Configure stdout encoding and return safe line/fail symbols."""
    try:
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    except (AttributeError, ValueError):
        pass

    try:
        "═✗".encode(sys.stdout.encoding or "utf-8")
        return "═", "✗"
    except (UnicodeEncodeError, LookupError):
        return "=", "X"


BOX_CHAR, FAIL_CHAR = _configure_output_symbols()


def format_result(label: str, result: AnalysisResult) -> str:
    """Human-readable summary; low-confidence fields are flagged for review."""
    lines = [BOX_CHAR * 60, f"  {label}", BOX_CHAR * 60]
    for attr, title in FIELD_LABELS:
        field = getattr(result, attr)
        value = field.value if field.value not in (None, "") else "-"
        flag = "" if field.is_high else "   (check)"
        lines.append(f"  {title:<14} {value}{flag}")
    return "\n".join(lines)


def _analyze_paths(paths: list[Path], mode: Optional[str], multipage: bool) -> list[tuple[str, AnalysisResult]]:
    for path in paths:
        if not path.exists():
            raise FileNotFoundError(f"Input file not found: {path}")

    if all(path.suffix.lower() in TEXT_SUFFIXES for path in paths):
        texts = [(path.name, path.read_text(encoding="utf-8", errors="replace")) for path in paths]
        if multipage:
            label = " + ".join(name for name, _ in texts)
            return [(label, analyze_text(combine_pages(text for _, text in texts)))]
        return [(name, analyze_text(text)) for name, text in texts]

    if any(path.suffix.lower() in TEXT_SUFFIXES for path in paths):
        raise ValueError("Do not mix .txt inputs with images in one run")

    extractor = get_extractor(mode)
    if multipage:
        label = " + ".join(path.name for path in paths)
        return [(label, extractor.analyze_pages(paths))]
    return [(path.name, extractor.analyze_pages([path])) for path in paths]


def cmd_analyze(args: argparse.Namespace) -> int:
    results = _analyze_paths([Path(p) for p in args.paths], args.mode, args.multipage)

    if args.json:
        payload = [
            {"file": label, **result.model_dump(mode="json"), "po_digits": result.po_digits}
            for label, result in results
        ]
        print(json.dumps(payload if len(payload) > 1 else payload[0], indent=2))
    else:
        for label, result in results:
            print(format_result(label, result))
    return 0


def cmd_plan(args: argparse.Namespace) -> int:
    for source, target in plan_intake(args.intake_dir):
        print(f"{source} => {target}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="doc-filer",
        description="Extract vendor, type, date, PO, part number and description from scanned documents.",
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", parents=[common], help="Analyze documents")
    analyze.add_argument("paths", nargs="+", help=".txt files with recognized text, or page images")
    analyze.add_argument(
        "--mode",
        choices=sorted(EXTRACTORS),
        default=None,
        help="Extraction strategy for images (default: $DOC_ANALYZER or ocr)",
    )
    analyze.add_argument("--multipage", action="store_true", help="Treat all inputs as pages of one document")
    analyze.add_argument("--json", action="store_true", help="Print JSON instead of a summary")
    analyze.set_defaults(func=cmd_analyze)

    plan = sub.add_parser("plan", parents=[common], help="Dry-run filing plan for an intake folder (filenames only)")
    plan.add_argument("intake_dir", help="Folder of files to plan")
    plan.set_defaults(func=cmd_plan)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        json_format=env_flag("LOG_JSON"),
    )

    try:
        return args.func(args)
    except (FileNotFoundError, ValueError, RuntimeError) as exc:
        logger.debug("cli_error | command=%s | error=%s", args.command, exc, exc_info=True)
        print(f"{FAIL_CHAR} {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
