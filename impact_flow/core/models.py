"""
Core data models for change impact analysis.

Plain dataclasses for values produced inside one analysis call, and a
pydantic model for the change specification that is parsed from YAML.
"""

from enum import Enum
from typing import List, Dict, Any, Optional, Tuple
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field, field_validator

from impact_flow.core.errors import ToleranceWarning


class ChangeType(str, Enum):
    CONTRACT = "contract"
    IMPLEMENTATION = "implementation"
    RESOURCE = "resource"
    OTHER = "other"


class RiskType(str, Enum):
    CONTRACT_COMPLIANCE = "ContractCompliance"
    HIGH_IMPACT = "HighImpact"
    MEDIUM_IMPACT = "MediumImpact"
    LOW_IMPACT = "LowImpact"


@dataclass
class ComponentInfo:
    """A component as reported by a code structure provider."""
    name: str
    dependencies: List[str] = field(default_factory=list)
    file_path: Optional[str] = None  # Only set by source-scanning providers


@dataclass(frozen=True)
class DependencyEdge:
    """Directed edge meaning 'source depends on target'."""
    source: str
    target: str
    weight: float = 1.0

    def __post_init__(self):
        if self.weight <= 0:
            raise ValueError(f"Edge weight must be positive, got {self.weight}")


class ChangeSpecification(BaseModel):
    """
    Caller-provided description of a proposed change.

    Keys are camelCase in YAML documents (``changeType``, ``affectedContracts``,
    ``expectedImpact``); snake_case names are accepted when building the model
    in code.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    component: str
    change_type: str = Field(default=ChangeType.OTHER.value, alias="changeType")
    changes: Dict[str, Any] = Field(default_factory=dict)
    affected_contracts: Tuple[str, ...] = Field(default_factory=tuple, alias="affectedContracts")
    expected_impact: Dict[str, float] = Field(default_factory=dict, alias="expectedImpact")

    @field_validator("change_type", mode="before")
    @classmethod
    def _normalize_change_type(cls, value: Any) -> str:
        if value is None:
            return ChangeType.OTHER.value
        if isinstance(value, Enum):
            value = value.value
        return str(value).strip().lower()

    @field_validator("changes", "expected_impact", mode="before")
    @classmethod
    def _empty_mapping(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("affected_contracts", mode="before")
    @classmethod
    def _empty_sequence(cls, value: Any) -> Any:
        return () if value is None else value


@dataclass(frozen=True)
class RiskArea:
    component: str
    risk_type: RiskType
    risk_score: float
    description: str
    affected_contracts: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "component": self.component,
            "riskType": self.risk_type.value,
            "riskScore": self.risk_score,
            "description": self.description,
            "affectedContracts": list(self.affected_contracts),
        }


@dataclass
class ImpactAnalysisResult:
    """Everything one analysis call produces."""
    impact_scores: Dict[str, float] = field(default_factory=dict)
    risk_areas: List[RiskArea] = field(default_factory=list)
    suggested_mitigations: List[str] = field(default_factory=list)
    affected_components: Dict[str, List[str]] = field(default_factory=dict)
    tolerance_warnings: List[ToleranceWarning] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "impactScores": dict(self.impact_scores),
            "riskAreas": [area.to_dict() for area in self.risk_areas],
            "suggestedMitigations": list(self.suggested_mitigations),
            "affectedComponents": {tier: list(names) for tier, names in self.affected_components.items()},
        }
        if self.tolerance_warnings:
            data["toleranceWarnings"] = [w.to_dict() for w in self.tolerance_warnings]
        return data
