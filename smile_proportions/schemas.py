from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class ToothBoundsIn(BaseModel):
    x: float = Field(..., description="Center X in % of image width")
    y: float = Field(..., description="Center Y in % of image height")
    width: float = Field(..., description="Box width in % of image width")
    height: float = Field(..., description="Box height in % of image height")


class SmileAnalysis(BaseModel):
    """Smile analysis context from the upstream assessment. Passed through as-is."""

    model_config = ConfigDict(extra="allow")

    facial_midline: Optional[str] = None
    dental_midline: Optional[str] = None
    smile_line: Optional[str] = None
    golden_ratio_compliance: Optional[float] = None
    symmetry_score: Optional[float] = None


class ProportionRequest(BaseModel):
    bounds: List[ToothBoundsIn] = Field(default_factory=list)
    analysis: Optional[SmileAnalysis] = None


class Midline(BaseModel):
    x: float
    y_start: float
    y_end: float


class Bracket(BaseModel):
    x1: float
    w1: float
    x2: float
    w2: float
    ratio: float
    ideal: float
    y: float
    verdict: str  # "Ideal", "Above", "Below"


class SmileArcPoint(BaseModel):
    x: float
    y: float  # incisal edge


class ProportionLinesOut(BaseModel):
    midline: Optional[Midline]
    golden_ratio_brackets: List[Bracket]
    smile_arc: List[SmileArcPoint]


class ProportionSummary(BaseModel):
    tooth_count: int
    bracket_count: int
    near_ideal_count: int
    mean_ratio: float
    compliance: float = Field(..., description="% of brackets near the golden ratio")
    midline_offset: Optional[float] = Field(
        None, description="Midline X minus image center, in %"
    )


class ProportionMeta(BaseModel):
    process_time: float
    tooth_count: int
    dropped_count: int


class ProportionResponse(BaseModel):
    lines: ProportionLinesOut
    summary: ProportionSummary
    meta: ProportionMeta
