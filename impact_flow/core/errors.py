"""
Exception hierarchy for impact analysis.

Algorithmic steps never raise for well-formed input; every failure below
originates at the I/O or collaborator boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from impact_flow.core.models import ImpactAnalysisResult


class ImpactFlowError(Exception):
    """Base class for all impact-flow failures."""


class InputError(ImpactFlowError):
    """The change specification is missing, unreadable, or malformed."""


class CollaboratorError(ImpactFlowError):
    """A code structure provider or contract validator failed."""


class StructureProviderError(CollaboratorError):
    """The component snapshot could not be produced."""


class ContractNotFoundError(CollaboratorError):
    """No contract document exists for the requested name."""

    def __init__(self, contract: str, message: Optional[str] = None):
        super().__init__(message or f"Contract not found: {contract}")
        self.contract = contract


class ContractComplianceError(ImpactFlowError):
    """An affected contract failed validation.

    The analysis result computed before validation is kept on the exception
    so callers can still inspect it.
    """

    def __init__(
        self,
        contract: str,
        errors: List[str],
        result: Optional["ImpactAnalysisResult"] = None,
    ):
        super().__init__(f"Contract validation failed for {contract}: {', '.join(errors)}")
        self.contract = contract
        self.errors = list(errors)
        self.result = result


@dataclass(frozen=True)
class ToleranceWarning:
    """Expected impact differs from the computed score by more than the tolerance."""
    component: str
    expected: float
    actual: float
    tolerance: float

    @property
    def message(self) -> str:
        return (
            f"Impact mismatch for {self.component}: "
            f"Expected {self.expected:.2f}, Actual {self.actual:.2f}"
        )

    def to_dict(self) -> dict:
        return {
            "component": self.component,
            "expected": self.expected,
            "actual": self.actual,
            "tolerance": self.tolerance,
        }
