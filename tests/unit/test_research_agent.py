"""
Unit tests for the Gemini research agent.

The LangChain chain is replaced with a mock so no model is called.

Dependencies: pytest, unittest.mock
System role: Research pipeline verification
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from prospect_batch.core.batch_processing.prospect import ProspectInput
from prospect_batch.core.batch_processing.research import ProspectResearchAgent
from prospect_batch.core.batch_processing.research.research_prompt import RESEARCH_PROMPT
from prospect_batch.core.exceptions import ResearchPipelineError, ValidationError


@pytest.fixture
def agent():
    return ProspectResearchAgent(model_id="gemini-test", temperature=0.0, google_api_key="test-key")


@pytest.fixture
def prospect():
    return ProspectInput(
        name="Jane Doe",
        address="12 Elm St",
        city="Austin",
        state="TX",
        full_address="12 Elm St, Austin, TX",
        company="Doe Robotics",
    )


def install_chain(agent, response):
    chain = MagicMock()
    chain.ainvoke = AsyncMock(return_value=response)
    agent._chain = chain
    return chain


class TestProspectResearchAgent:
    """Test suite for ProspectResearchAgent.execute."""

    async def test_returns_parsed_output(self, agent, prospect, research_output):
        raw = MagicMock()
        raw.usage_metadata = {"total_tokens": 812}
        chain = install_chain(agent, {"raw": raw, "parsed": research_output, "parsing_error": None})

        result = await agent.execute(prospect)

        assert result.success is True
        assert result.data == research_output
        assert result.tokens_used == 812
        assert result.model_used == "gemini-test"
        chain.ainvoke.assert_awaited_once_with({
            "name": "Jane Doe",
            "full_address": "12 Elm St, Austin, TX",
            "details": "company: Doe Robotics",
        })

    async def test_missing_usage_metadata(self, agent, prospect, research_output):
        install_chain(agent, {"raw": None, "parsed": research_output, "parsing_error": None})

        result = await agent.execute(prospect)

        assert result.tokens_used == 0

    async def test_unparseable_output_raises(self, agent, prospect):
        install_chain(agent, {"raw": MagicMock(), "parsed": None, "parsing_error": ValueError("bad json")})

        with pytest.raises(ResearchPipelineError, match="could not be parsed"):
            await agent.execute(prospect)

    async def test_invalid_prospect_is_rejected_before_model_call(self, agent):
        chain = install_chain(agent, {})

        with pytest.raises(ValidationError, match="Name is required"):
            await agent.execute(ProspectInput(name="", city="Austin", state="TX"))

        chain.ainvoke.assert_not_awaited()


class TestResearchPrompt:
    """Test suite for the research prompt template."""

    def test_prompt_variables(self):
        assert set(RESEARCH_PROMPT.input_variables) == {"name", "full_address", "details"}

    def test_prompt_renders_prospect(self):
        messages = RESEARCH_PROMPT.format_messages(
            name="Jane Doe",
            full_address="12 Elm St, Austin, TX",
            details="none",
        )

        assert messages[0].type == "system"
        assert "Jane Doe" in messages[-1].content
