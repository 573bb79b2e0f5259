from __future__ import annotations

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class Criterion(BaseModel):
    label: str
    # raw weights stay untyped: the normalizer decides what is usable
    weight: Any = Field(default=None, examples=[0.25])


class NormalizedCriterion(BaseModel):
    label: str
    weight: float


class NormalizeRequest(BaseModel):
    criteria: List[Criterion] = Field(default_factory=list)
    default_weight: Optional[float] = Field(default=None, ge=0.0, le=1.0, examples=[0.2])


class ReportSummary(BaseModel):
    criteria: int = 0
    warnings: int = 0
    passes: int = 0
    fallback: str = "none"
    deterministic: bool = True


class ReportItem(BaseModel):
    row: Optional[int] = None
    column: Optional[str] = None
    issue: str
    value: Optional[str] = None
    action: str


class NormalizationReport(BaseModel):
    summary: ReportSummary
    normalizations: Dict[str, Any] = Field(default_factory=dict)
    warnings: List[ReportItem] = Field(default_factory=list)


class NormalizeResponse(BaseModel):
    criteria: List[NormalizedCriterion]
    report: NormalizationReport


class KitResponse(BaseModel):
    rubric_key: str
    kit: Dict[str, Any]
    report: NormalizationReport


class HealthResponse(BaseModel):
    ok: bool = True
