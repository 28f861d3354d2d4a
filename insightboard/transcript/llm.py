"""Task extraction through the OpenAI chat completions API."""

import asyncio
import json
import logging
import os
import re
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

from ..config.models import LLMConfig
from ..graph.models import RawTask
from .base import MAX_TASKS, BaseTranscriptParser, normalize_tasks

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You extract actionable tasks from meeting transcripts. Return ONLY valid JSON, no other text.

Output format: { "tasks": [ { "id": "task-1", "description": "clear actionable text", "priority": "High"|"Medium"|"Low", "dependencies": ["task-2"] } ] }

Rules:
- id: exactly "task-1", "task-2", ... in order.
- description: one clear action per task, from the meeting.
- priority: High for blockers/P0, Medium for important, Low for backlog.
- dependencies: array of task IDs that must be done before this one (e.g. "Stable build by Monday" depends on "Fix payment bug"). Use empty [] when no dependency."""


class ParserConfigError(Exception):
    """Parser cannot be used with the current configuration."""

    pass


class LLMOutputError(Exception):
    """Model response is empty, not JSON, or does not match the task schema."""

    pass


class LLMRequestError(Exception):
    """OpenAI request failed (connection, auth, rate limit, server error)."""

    pass


class LLMTimeoutError(Exception):
    """Model request exceeded its timeout."""

    def __init__(self, timeout_sec: float):
        super().__init__(f"LLM request timed out after {timeout_sec:g}s")
        self.timeout_sec = timeout_sec


class LLMTaskItem(BaseModel):
    """One task as returned by the model, before normalization."""

    id: str
    description: str = ""
    priority: str = "Medium"
    dependencies: list[str] = Field(default_factory=list)


class LLMTasksResponse(BaseModel):
    """Top-level model response."""

    tasks: list[LLMTaskItem]


def strip_code_block(content: str) -> str:
    """Return the body of a fenced code block, or the content unchanged."""
    match = re.search(r"```(?:json)?\s*([\s\S]*?)```", content)
    return match.group(1).strip() if match else content


def parse_llm_output(content: Any) -> LLMTasksResponse:
    """Parse and validate model output.

    Args:
        content: JSON text or already decoded data

    Returns:
        Validated response

    Raises:
        LLMOutputError: If content is not JSON or fails schema validation
    """
    if isinstance(content, str):
        try:
            content = json.loads(content)
        except json.JSONDecodeError:
            raise LLMOutputError("LLM response was not valid JSON")

    try:
        return LLMTasksResponse.model_validate(content)
    except ValidationError as e:
        issues = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise LLMOutputError(f"LLM output schema validation failed: {issues}")


class LLMTranscriptParser(BaseTranscriptParser):
    """Extracts tasks with an OpenAI chat model."""

    def __init__(self, config: Optional[LLMConfig] = None, max_tasks: int = MAX_TASKS):
        """Initialize parser.

        Args:
            config: LLM configuration (defaults if omitted)
            max_tasks: Max tasks kept from one response
        """
        self.config = config or LLMConfig()
        self.max_tasks = max_tasks
        self.api_key = (os.environ.get(self.config.api_key_env) or "").strip()

    def _create_client(self):
        import openai

        if not self.api_key:
            raise ParserConfigError(
                f"{self.config.api_key_env} is not set; cannot use LLM parser."
            )
        # Single attempt: timeout_sec bounds the whole request
        return openai.OpenAI(api_key=self.api_key, max_retries=0)

    async def parse(self, transcript: str) -> list[RawTask]:
        import openai

        client = self._create_client()
        text = transcript.strip()[: self.config.max_transcript_chars]
        timeout_sec = self.config.timeout_sec

        logger.info(f"Extracting tasks with {self.config.model} ({len(text)} chars)")
        try:
            response = await asyncio.to_thread(
                client.chat.completions.create,
                model=self.config.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {
                        "role": "user",
                        "content": f"Extract tasks from this meeting transcript:\n\n{text}",
                    },
                ],
                response_format={"type": "json_object"},
                temperature=self.config.temperature,
                timeout=timeout_sec,
            )
        except openai.APITimeoutError:
            raise LLMTimeoutError(timeout_sec)
        except openai.OpenAIError as e:
            raise LLMRequestError(f"OpenAI request failed: {e}")

        content = ""
        if response.choices:
            content = (response.choices[0].message.content or "").strip()
        if not content:
            raise LLMOutputError("Empty response from LLM")

        validated = parse_llm_output(strip_code_block(content))
        tasks = normalize_tasks(
            [item.model_dump() for item in validated.tasks],
            max_tasks=self.max_tasks,
        )
        logger.info(f"LLM extracted {len(tasks)} tasks")
        return tasks
