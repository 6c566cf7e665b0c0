"""
config.py - Environment configuration.

Loads `.env` once on import and exposes small typed accessors. Values are
read from `os.environ` at call time so tests can monkeypatch them.

Recognized variables:
    DOC_ANALYZER    extraction strategy: "ocr" (default) or "vision"
    OLLAMA_URL      base URL of the local Ollama server
    VISION_MODEL    Ollama vision model tag
    VISION_TIMEOUT  seconds to wait for one vision response
    UPLOAD_DIR      staging folder for uploaded files
    OUTPUT_DIR      root of the filed-document tree
    LOG_DIR         folder holding audit.jsonl
    HOST, PORT      API bind address and port
    DEBUG           verbose logging when truthy
    LOG_JSON        JSON log lines instead of text when truthy
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

from logging_config import get_logger

logger = get_logger(__name__)

try:
    load_dotenv()
except UnicodeDecodeError:
    # Fallback for legacy Windows-encoded .env files.
    load_dotenv(encoding="cp1252")

TRUTHY = {"1", "true", "yes", "on"}


def env_str(name: str, default: str) -> str:
    value = os.getenv(name, "").strip()
    return value or default


def env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("config_invalid_int | name=%s | raw=%r | fallback=%s", name, raw, default)
        return default


def env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("config_invalid_float | name=%s | raw=%r | fallback=%s", name, raw, default)
        return default


def env_flag(name: str) -> bool:
    """Return True when the variable is set to a truthy word."""
    return os.getenv(name, "").strip().lower() in TRUTHY
