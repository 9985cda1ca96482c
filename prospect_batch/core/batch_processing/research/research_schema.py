"""
Prospect research schemas.

Structured output the research model is asked to produce, and the
pipeline result envelope handed back to the batch engine.

Dependencies: pydantic
System role: Research pipeline contract
"""

from typing import Literal

from pydantic import BaseModel, Field


class ResearchSource(BaseModel):
    """A public source backing the research."""

    title: str = Field(description="Source title")
    url: str = Field(description="Source URL")


class PropertyRecord(BaseModel):
    """A real estate holding."""

    address: str = Field(description="Property address")
    value: float | None = Field(default=None, description="Estimated market value in USD")
    source: str = Field(default="", description="Where the value comes from")


class RealEstateHoldings(BaseModel):
    properties: list[PropertyRecord] = Field(default_factory=list)
    total_value: float | None = Field(default=None, description="Sum of property values in USD")


class BusinessOwnership(BaseModel):
    company: str = Field(description="Company name")
    role: str = Field(description="Role or title at the company")
    estimated_value: float | None = Field(default=None, description="Estimated equity value in USD")


class SecuritiesProfile(BaseModel):
    has_sec_filings: bool = Field(default=False, description="Appears in SEC insider filings")
    insider_at: list[str] = Field(default_factory=list, description="Companies with insider filings")


class WealthProfile(BaseModel):
    real_estate: RealEstateHoldings = Field(default_factory=RealEstateHoldings)
    business_ownership: list[BusinessOwnership] = Field(default_factory=list)
    securities: SecuritiesProfile = Field(default_factory=SecuritiesProfile)


class MajorGift(BaseModel):
    organization: str
    amount: float | None = None
    year: int | None = None


class PoliticalGiving(BaseModel):
    total: float = Field(default=0, description="Total political contributions in USD")
    party_lean: str = Field(default="UNKNOWN", description="Predominant party, if any")


class PhilanthropyProfile(BaseModel):
    political_giving: PoliticalGiving = Field(default_factory=PoliticalGiving)
    foundation_affiliations: list[str] = Field(default_factory=list)
    nonprofit_boards: list[str] = Field(default_factory=list)
    known_major_gifts: list[MajorGift] = Field(default_factory=list)


class BackgroundProfile(BaseModel):
    age: int | None = None
    education: list[str] = Field(default_factory=list)
    career_summary: str = Field(default="")


class ResearchMetrics(BaseModel):
    """Giving capacity metrics."""

    estimated_net_worth_low: float | None = Field(default=None, description="Net worth lower bound in USD")
    estimated_net_worth_high: float | None = Field(default=None, description="Net worth upper bound in USD")
    estimated_gift_capacity: float | None = Field(default=None, description="Estimated gift capacity in USD")
    recommended_ask: float | None = Field(default=None, description="Recommended first ask in USD")
    capacity_rating: Literal["MAJOR", "PRINCIPAL", "LEADERSHIP", "ANNUAL"] | None = Field(
        default=None,
        description="MAJOR, PRINCIPAL, LEADERSHIP or ANNUAL giving tier",
    )
    romy_score: int | None = Field(default=None, ge=0, le=41, description="RomyScore from 0 to 41")
    confidence_level: Literal["HIGH", "MEDIUM", "LOW"] = Field(default="LOW")


class ProspectResearchOutput(BaseModel):
    """Structured research profile for one prospect."""

    executive_summary: str = Field(description="Two to four sentence summary of the prospect")
    metrics: ResearchMetrics = Field(default_factory=ResearchMetrics)
    wealth: WealthProfile = Field(default_factory=WealthProfile)
    philanthropy: PhilanthropyProfile = Field(default_factory=PhilanthropyProfile)
    background: BackgroundProfile = Field(default_factory=BackgroundProfile)
    sources: list[ResearchSource] = Field(default_factory=list)


class PipelineResult(BaseModel):
    """Outcome of one research pipeline run."""

    success: bool
    data: ProspectResearchOutput | None = None
    error: str | None = None
    tokens_used: int = 0
    model_used: str | None = None
    duration_ms: int | None = None
