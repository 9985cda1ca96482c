"""
Pipeline result adapter.

Maps a PipelineResult onto the work item's result columns and renders
the markdown report stored in report_content.

Dependencies: prospect_batch.core.batch_processing.research.research_schema
System role: Translation between research output and item storage
"""

from typing import Any

from prospect_batch.core.batch_processing.research.research_schema import (
    PipelineResult,
    ProspectResearchOutput,
)
from prospect_batch.core.exceptions import ResearchPipelineError


def romy_tier_from_score(score: int | None) -> str | None:
    """Platinum from 31, Gold from 21, Silver from 11, otherwise Bronze."""
    if score is None:
        return None
    if score >= 31:
        return "Platinum"
    if score >= 21:
        return "Gold"
    if score >= 11:
        return "Silver"
    return "Bronze"


def average_net_worth(low: float | None, high: float | None) -> float | None:
    """Midpoint of the net worth range, or whichever bound is known."""
    if low and high:
        return (low + high) / 2
    return high or low or None


def _millions(value: float) -> str:
    return f"${value / 1_000_000:.1f}M"


def render_report(output: ProspectResearchOutput) -> str:
    """
    Render research output as a markdown report.

    Args:
        output: Structured research output

    Returns:
        str: Markdown document
    """
    metrics = output.metrics
    lines = [
        "# Prospect Research Report",
        "",
        "| Metric | Value | Confidence |",
        "|--------|-------|------------|",
    ]

    low, high = metrics.estimated_net_worth_low, metrics.estimated_net_worth_high
    if low or high:
        net_worth = f"{_millions(low)} - {_millions(high)}" if low and high else _millions(high or low)
        lines.append(f"| **Net Worth** | {net_worth} | {metrics.confidence_level} |")
    if metrics.capacity_rating:
        lines.append(f"| **Capacity Rating** | {metrics.capacity_rating} | - |")
    if metrics.romy_score is not None:
        lines.append(f"| **RomyScore** | {metrics.romy_score}/41 | - |")

    lines += ["", "---", "", "## Executive Summary", "", output.executive_summary, "", "---", ""]

    lines += ["## Wealth Indicators", ""]
    real_estate = output.wealth.real_estate
    if real_estate.properties:
        lines += ["### Real Estate", "", "| Property | Value | Source |", "|----------|-------|--------|"]
        for prop in real_estate.properties:
            lines.append(f"| {prop.address} | ${prop.value or 0:,.0f} | {prop.source} |")
        if real_estate.total_value:
            lines += ["", f"**Total Real Estate:** ${real_estate.total_value:,.0f}"]
        lines.append("")

    if output.wealth.business_ownership:
        lines += ["### Business Ownership", ""]
        lines += [f"- **{biz.company}** - {biz.role}" for biz in output.wealth.business_ownership]
        lines.append("")

    if output.wealth.securities.has_sec_filings:
        lines += [
            "### Securities (SEC Verified)",
            "",
            f"Insider at: {', '.join(output.wealth.securities.insider_at)}",
            "",
        ]

    lines += ["---", "", "## Philanthropic Profile", ""]
    philanthropy = output.philanthropy
    if philanthropy.political_giving.total > 0:
        lines += [
            f"**Political Giving:** ${philanthropy.political_giving.total:,.0f} "
            f"({philanthropy.political_giving.party_lean})",
            "",
        ]
    if philanthropy.foundation_affiliations:
        lines.append("**Foundation Affiliations:**")
        lines += [f"- {name}" for name in philanthropy.foundation_affiliations]
        lines.append("")
    if philanthropy.nonprofit_boards:
        lines.append("**Nonprofit Boards:**")
        lines += [f"- {name}" for name in philanthropy.nonprofit_boards]
        lines.append("")

    if output.sources:
        lines += ["---", "", "## Sources", ""]
        lines += [f"- [{source.title}]({source.url})" for source in output.sources]

    return "\n".join(lines)


def adapt_pipeline_result(result: PipelineResult) -> dict[str, Any]:
    """
    Convert a successful pipeline result into item result columns.

    Args:
        result: Pipeline result

    Returns:
        dict: Column values for BatchItemCRUD.record_success

    Raises:
        ResearchPipelineError: If the pipeline reported failure or no data
    """
    if not result.success or result.data is None:
        raise ResearchPipelineError(result.error or "Pipeline execution failed")

    output = result.data
    metrics = output.metrics
    business_equity = sum(b.estimated_value or 0 for b in output.wealth.business_ownership)

    return {
        "report_content": render_report(output),
        "romy_score": metrics.romy_score,
        "romy_score_tier": romy_tier_from_score(metrics.romy_score),
        "capacity_rating": metrics.capacity_rating,
        "estimated_net_worth": average_net_worth(
            metrics.estimated_net_worth_low, metrics.estimated_net_worth_high
        ),
        "estimated_gift_capacity": metrics.estimated_gift_capacity,
        "recommended_ask": metrics.recommended_ask,
        "sources_found": [{"name": s.title, "url": s.url} for s in output.sources],
        "tokens_used": result.tokens_used,
        "model_used": result.model_used,
        "enrichment_data": {
            "confidence_level": metrics.confidence_level,
            "wealth_indicators": {
                "real_estate_total": output.wealth.real_estate.total_value,
                "property_count": len(output.wealth.real_estate.properties) or None,
                "business_equity": business_equity or None,
            },
            "business_details": {
                "companies": [b.company for b in output.wealth.business_ownership],
                "roles": [b.role for b in output.wealth.business_ownership],
            },
            "giving_history": {
                "total_political": output.philanthropy.political_giving.total or None,
                "political_party": output.philanthropy.political_giving.party_lean,
                "foundation_affiliations": output.philanthropy.foundation_affiliations,
                "nonprofit_boards": output.philanthropy.nonprofit_boards,
                "known_major_gifts": [
                    gift.model_dump() for gift in output.philanthropy.known_major_gifts
                ],
            },
            "affiliations": {
                "education": output.background.education,
                "public_company_boards": output.wealth.securities.insider_at,
            },
        },
    }
