"""Threshold-based risk classification of impact scores."""

from dataclasses import dataclass
from typing import Dict, List, Mapping

from impact_flow.core.models import ChangeSpecification, RiskArea, RiskType

DEFAULT_RISK_THRESHOLD = 0.6
DEFAULT_MEDIUM_IMPACT_THRESHOLD = 0.4
DEFAULT_HIGH_IMPACT_THRESHOLD = 0.7


@dataclass
class RiskClassifier:
    risk_threshold: float = DEFAULT_RISK_THRESHOLD
    medium_threshold: float = DEFAULT_MEDIUM_IMPACT_THRESHOLD
    high_threshold: float = DEFAULT_HIGH_IMPACT_THRESHOLD

    def classify(self, scores: Mapping[str, float], change: ChangeSpecification) -> List[RiskArea]:
        """Return a RiskArea for every component scoring at or above the risk threshold."""
        risk_areas: List[RiskArea] = []
        for component, score in scores.items():
            if score < self.risk_threshold:
                continue
            risk_areas.append(
                RiskArea(
                    component=component,
                    risk_type=self.risk_type(component, score, change),
                    risk_score=score,
                    description=self.describe(component, score),
                    # Prefix match: "PayAPI" also owns "PayAPI.v2"
                    affected_contracts=tuple(
                        contract for contract in change.affected_contracts if contract.startswith(component)
                    ),
                )
            )
        return risk_areas

    def risk_type(self, component: str, score: float, change: ChangeSpecification) -> RiskType:
        if component in change.affected_contracts:
            return RiskType.CONTRACT_COMPLIANCE
        if score >= self.high_threshold:
            return RiskType.HIGH_IMPACT
        if score >= self.medium_threshold:
            return RiskType.MEDIUM_IMPACT
        return RiskType.LOW_IMPACT

    def describe(self, component: str, score: float) -> str:
        if score >= self.high_threshold:
            return f"High risk of breaking changes affecting {component}"
        if score >= self.medium_threshold:
            return f"Potential indirect effects on {component}"
        return f"Minor impact possible on {component}"

    def tier(self, score: float) -> str:
        """Bucket name used when grouping affected components."""
        if score >= self.high_threshold:
            return "high"
        if score >= self.medium_threshold:
            return "medium"
        return "low"

    def group_by_tier(self, scores: Mapping[str, float]) -> Dict[str, List[str]]:
        groups: Dict[str, List[str]] = {"high": [], "medium": [], "low": []}
        for component, score in scores.items():
            groups[self.tier(score)].append(component)
        return groups
