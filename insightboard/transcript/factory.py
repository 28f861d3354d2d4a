"""Transcript parser selection."""

import logging
import os

from ..config.models import InsightBoardConfig
from .base import BaseTranscriptParser
from .llm import LLMTranscriptParser, ParserConfigError
from .mock import MockTranscriptParser

logger = logging.getLogger(__name__)


def create_parser(config: InsightBoardConfig) -> BaseTranscriptParser:
    """Create the parser selected by ``parser.mode``.

    ``auto`` picks the LLM parser when its API key env var is set, and the
    line-based parser otherwise.

    Raises:
        ParserConfigError: If the mode is unknown
    """
    mode = (config.parser.mode or "auto").lower()

    if mode == "auto":
        has_key = bool((os.environ.get(config.llm.api_key_env) or "").strip())
        mode = "llm" if has_key else "mock"

    if mode == "llm":
        logger.debug(f"Using LLM parser ({config.llm.model})")
        return LLMTranscriptParser(config.llm, max_tasks=config.parser.max_tasks)
    if mode == "mock":
        logger.debug("Using line-based parser")
        return MockTranscriptParser()

    raise ParserConfigError(f"Unknown parser mode: {config.parser.mode}")
