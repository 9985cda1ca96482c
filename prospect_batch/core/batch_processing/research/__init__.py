"""
Prospect research pipeline: schemas, prompt, Gemini agent and result adapter.
"""

from prospect_batch.core.batch_processing.research.pipeline_adapter import (
    adapt_pipeline_result,
    average_net_worth,
    render_report,
    romy_tier_from_score,
)
from prospect_batch.core.batch_processing.research.research_agent import (
    ProspectResearchAgent,
    ResearchPipeline,
)
from prospect_batch.core.batch_processing.research.research_schema import (
    PipelineResult,
    ProspectResearchOutput,
)

__all__ = [
    "PipelineResult",
    "ProspectResearchAgent",
    "ProspectResearchOutput",
    "ResearchPipeline",
    "adapt_pipeline_result",
    "average_net_worth",
    "render_report",
    "romy_tier_from_score",
]
