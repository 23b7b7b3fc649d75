"""Canned remediation suggestions keyed by risk type."""

from typing import Dict, Iterable, List, Optional

from impact_flow.core.models import RiskArea, RiskType

MITIGATION_TEMPLATES: Dict[RiskType, List[str]] = {
    RiskType.CONTRACT_COMPLIANCE: [
        "Implement compatibility layer for {component}",
        "Add contract validation tests for {component}",
    ],
    RiskType.HIGH_IMPACT: [
        "Phase implementation for {component}",
        "Increase test coverage for {component}",
        "Prepare rollback procedure for {component}",
    ],
    RiskType.MEDIUM_IMPACT: [
        "Monitor {component} during deployment",
        "Add performance tests for {component}",
    ],
}


class MitigationAdvisor:
    def __init__(self, templates: Optional[Dict[RiskType, List[str]]] = None):
        self.templates = templates if templates is not None else MITIGATION_TEMPLATES

    def advise(self, risk_areas: Iterable[RiskArea]) -> List[str]:
        """Suggestions for all risk areas, deduplicated in first-seen order."""
        # dict preserves insertion order
        mitigations: Dict[str, None] = {}
        for risk in risk_areas:
            for template in self.templates.get(risk.risk_type, []):
                mitigations.setdefault(template.format(component=risk.component), None)
        return list(mitigations)
