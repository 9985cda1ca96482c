"""
Prospect research agent implementation.

Runs one prospect through Gemini with structured output and returns a
PipelineResult. Any object with the same ``execute`` coroutine can stand
in for the agent (see ResearchPipeline).

Dependencies: langchain_core, langchain_google_genai, prospect_batch.configs
System role: Default research pipeline for batch items
"""

import logging
import time
from typing import Any, Protocol

from langchain_google_genai import ChatGoogleGenerativeAI

from prospect_batch.configs import get_settings
from prospect_batch.core.batch_processing.prospect import ProspectInput, validate_prospect_data
from prospect_batch.core.batch_processing.research.research_prompt import RESEARCH_PROMPT
from prospect_batch.core.batch_processing.research.research_schema import (
    PipelineResult,
    ProspectResearchOutput,
)
from prospect_batch.core.exceptions import ResearchPipelineError, ValidationError
from prospect_batch.observability.log_utils import mask_prospect_name

logger = logging.getLogger(__name__)

DETAIL_FIELDS = ("email", "phone", "company", "title", "notes")


class ResearchPipeline(Protocol):
    """Anything that can research a single prospect."""

    async def execute(
        self,
        prospect: ProspectInput,
        options: dict[str, Any] | None = None,
    ) -> PipelineResult:
        ...


class ProspectResearchAgent:
    """
    Gemini-backed prospect research agent.

    The chat model is built on first use so the agent can be constructed
    without credentials (tests, workers that never reach a prospect).
    """

    def __init__(
        self,
        model_id: str | None = None,
        temperature: float | None = None,
        google_api_key: str | None = None,
    ) -> None:
        """
        Initialize research agent.

        Args:
            model_id: Gemini model identifier (defaults to settings)
            temperature: Model temperature (defaults to settings)
            google_api_key: API key override (defaults to settings/environment)
        """
        research_settings = get_settings().research
        self._model_id = model_id or research_settings.model_id
        self._temperature = (
            temperature if temperature is not None else research_settings.temperature
        )
        self._google_api_key = google_api_key or research_settings.google_api_key
        self._chain = None

    @property
    def model_id(self) -> str:
        return self._model_id

    def _get_chain(self):
        if self._chain is None:
            model_kwargs: dict[str, Any] = {
                "model": self._model_id,
                "temperature": self._temperature,
            }
            if self._google_api_key:
                model_kwargs["google_api_key"] = self._google_api_key
            model = ChatGoogleGenerativeAI(**model_kwargs)
            self._chain = RESEARCH_PROMPT | model.with_structured_output(
                ProspectResearchOutput,
                include_raw=True,
            )
        return self._chain

    async def execute(
        self,
        prospect: ProspectInput,
        options: dict[str, Any] | None = None,
    ) -> PipelineResult:
        """
        Research one prospect.

        Args:
            prospect: Normalized prospect
            options: Per-job options (unused keys are ignored)

        Returns:
            PipelineResult: Successful result with structured research data

        Raises:
            ValidationError: If the prospect lacks a name or any address data
            ResearchPipelineError: If Gemini output could not be parsed
        """
        errors = validate_prospect_data(prospect.model_dump())
        if errors:
            raise ValidationError("; ".join(errors), field="prospect")

        details = ", ".join(
            f"{field}: {value}"
            for field in DETAIL_FIELDS
            if (value := getattr(prospect, field, None))
        )
        start = time.monotonic()

        response = await self._get_chain().ainvoke({
            "name": prospect.name,
            "full_address": prospect.full_address or "unknown",
            "details": details or "none",
        })

        parsed: ProspectResearchOutput | None = response.get("parsed")
        if parsed is None:
            raise ResearchPipelineError(
                "Gemini returned research output that could not be parsed",
                details={"parsing_error": str(response.get("parsing_error"))},
            )

        usage = getattr(response.get("raw"), "usage_metadata", None) or {}
        duration_ms = int((time.monotonic() - start) * 1000)

        logger.info(
            "Prospect research completed",
            extra={
                "prospect": mask_prospect_name(prospect.name),
                "model_id": self._model_id,
                "duration_ms": duration_ms,
                "tokens_used": usage.get("total_tokens", 0),
            },
        )

        return PipelineResult(
            success=True,
            data=parsed,
            tokens_used=usage.get("total_tokens", 0),
            model_used=self._model_id,
            duration_ms=duration_ms,
        )
