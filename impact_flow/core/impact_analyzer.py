"""
Change impact analysis orchestration.

Loads a change specification, builds the dependency graph from the current
code structure, propagates impact, classifies risk and suggests mitigations.
The validation path additionally checks the affected contracts and compares
the computed scores with the impact the change author expected.
"""

import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from impact_flow.core.change_spec import load_change_specification
from impact_flow.core.config import ImpactFlowConfig
from impact_flow.core.contracts import ContractValidator, ValidationResult, YamlContractValidator
from impact_flow.core.dependency_graph import GraphBuilder
from impact_flow.core.errors import (
    CollaboratorError,
    ContractComplianceError,
    ImpactFlowError,
    ToleranceWarning,
)
from impact_flow.core.impact_propagator import ImpactPropagator
from impact_flow.core.mitigation_advisor import MitigationAdvisor
from impact_flow.core.models import ChangeSpecification, ComponentInfo, ImpactAnalysisResult
from impact_flow.core.risk_classifier import RiskClassifier
from impact_flow.core.structure_provider import (
    CodeStructureProvider,
    PythonStructureProvider,
    YamlStructureProvider,
)

logger = logging.getLogger(__name__)

CONTRACT_TYPE_FOR_COMPLIANCE = "interface"


class ChangeImpactAnalyzer:
    """Coordinates graph building, propagation, classification and validation."""

    def __init__(
        self,
        structure_provider: CodeStructureProvider,
        contract_validator: Optional[ContractValidator] = None,
        config: Optional[ImpactFlowConfig] = None,
    ):
        self.config = config or ImpactFlowConfig()
        self.structure_provider = structure_provider
        self.contract_validator = contract_validator

        self.graph_builder = GraphBuilder()
        self.propagator = ImpactPropagator(
            damping_factor=self.config.damping_factor,
            max_iterations=self.config.max_iterations,
            tolerance=self.config.tolerance,
            change_type_multipliers=dict(self.config.change_type_multipliers),
            contract_multiplier=self.config.contract_multiplier,
        )
        self.classifier = RiskClassifier(
            risk_threshold=self.config.risk_threshold,
            medium_threshold=self.config.medium_impact_threshold,
            high_threshold=self.config.high_impact_threshold,
        )
        self.advisor = MitigationAdvisor()

    async def analyze_change_impact(self, change_spec_path: Union[str, Path]) -> ImpactAnalysisResult:
        logger.info(f"Analyzing change impact for specification: {change_spec_path}")
        try:
            change = await asyncio.to_thread(load_change_specification, change_spec_path)
            return await self.analyze_change(change)
        except Exception as e:
            logger.error(f"Error analyzing change impact: {e}")
            raise

    async def validate_change(self, change_spec_path: Union[str, Path]) -> ImpactAnalysisResult:
        """
        Analyze a change, then check it against its contracts and expected impact.

        Raises:
            ContractComplianceError: If any affected contract fails validation.
                The computed result is attached to the exception.
        """
        logger.info(f"Validating change specification: {change_spec_path}")
        try:
            change = await asyncio.to_thread(load_change_specification, change_spec_path)
            result = await self.analyze_change(change)
            await self._validate_contract_compliance(change, result)
            result.tolerance_warnings = self._validate_expected_impact(change, result)
            return result
        except Exception as e:
            logger.error(f"Error validating change: {e}")
            raise

    async def calculate_impact_scores(self, change: ChangeSpecification) -> Dict[str, float]:
        components = await self._list_components()
        graph = self.graph_builder.build(components)
        logger.info(f"Dependency graph for {change.component}: {len(graph)} components, {graph.edge_count} edges")
        return self.propagator.propagate(graph, change)

    async def analyze_change(self, change: ChangeSpecification) -> ImpactAnalysisResult:
        """Analyze an already parsed change specification."""
        impact_scores = await self.calculate_impact_scores(change)
        risk_areas = self.classifier.classify(impact_scores, change)
        mitigations = self.advisor.advise(risk_areas)

        return ImpactAnalysisResult(
            impact_scores=impact_scores,
            risk_areas=risk_areas,
            suggested_mitigations=mitigations,
            affected_components=self._identify_affected_components(change, impact_scores),
        )

    def _identify_affected_components(
        self, change: ChangeSpecification, impact_scores: Dict[str, float]
    ) -> Dict[str, List[str]]:
        affected = self.classifier.group_by_tier(impact_scores)
        if change.affected_contracts:
            affected["contracts"] = list(change.affected_contracts)
        return affected

    async def _list_components(self) -> List[ComponentInfo]:
        try:
            return list(await self.structure_provider.list_components())
        except ImpactFlowError:
            raise
        except Exception as e:
            raise CollaboratorError(f"Code structure provider failed: {e}") from e

    async def _validate_contract_compliance(
        self, change: ChangeSpecification, result: ImpactAnalysisResult
    ) -> None:
        contracts = list(change.affected_contracts)
        if not contracts:
            return
        if self.contract_validator is None:
            raise CollaboratorError("Change affects contracts but no contract validator is configured")

        # Every validation runs to completion; failures are reported in affectedContracts order
        verdicts = await asyncio.gather(
            *(self._validate_contract(contract) for contract in contracts),
            return_exceptions=True,
        )
        for contract, verdict in zip(contracts, verdicts):
            if isinstance(verdict, BaseException):
                raise verdict
            if not verdict.is_valid:
                raise ContractComplianceError(contract, verdict.errors, result)

    async def _validate_contract(self, contract: str) -> ValidationResult:
        try:
            verdict = await self.contract_validator.validate_contract(contract, CONTRACT_TYPE_FOR_COMPLIANCE)
        except ImpactFlowError:
            raise
        except Exception as e:
            raise CollaboratorError(f"Contract validator failed for {contract}: {e}") from e
        if not isinstance(getattr(verdict, "is_valid", None), bool):
            raise CollaboratorError(f"Contract validator returned an invalid verdict for {contract}")
        return verdict

    def _validate_expected_impact(
        self, change: ChangeSpecification, result: ImpactAnalysisResult
    ) -> List[ToleranceWarning]:
        tolerance = self.config.expected_impact_tolerance
        warnings: List[ToleranceWarning] = []
        for component, expected in change.expected_impact.items():
            actual = result.impact_scores.get(component)
            if actual is None:
                continue
            if abs(actual - expected) > tolerance:
                warning = ToleranceWarning(component=component, expected=expected, actual=actual, tolerance=tolerance)
                logger.warning(warning.message)
                warnings.append(warning)
        return warnings


def create_analyzer(config: ImpactFlowConfig) -> ChangeImpactAnalyzer:
    """Wire the file-based collaborators described by ``config``."""
    components_path = config.components_path()
    if components_path is not None:
        provider = YamlStructureProvider(components_path)
    else:
        if config.language.lower() != "python":
            raise ValueError(f"Unsupported language: {config.language}")
        provider = PythonStructureProvider(config.root_path(), ignored_patterns=config.ignored_patterns)

    validator = YamlContractValidator(config.contracts_path())
    return ChangeImpactAnalyzer(provider, validator, config)
