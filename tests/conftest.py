"""
Shared fixtures for impact-flow tests.
"""

from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest
import yaml

from impact_flow.core.contracts import ValidationResult
from impact_flow.core.models import ComponentInfo


class RecordingValidator:
    """Contract validator stub that returns canned verdicts and records calls."""

    def __init__(self, verdicts: Optional[Dict[str, ValidationResult]] = None):
        self.verdicts = verdicts or {}
        self.calls: List[tuple] = []

    async def validate_contract(self, contract: str, contract_type: str) -> ValidationResult:
        self.calls.append((contract, contract_type))
        return self.verdicts.get(contract, ValidationResult())


@pytest.fixture
def write_yaml(tmp_path: Path) -> Callable[[str, object], Path]:
    """Write ``data`` as YAML under tmp_path and return the file path."""
    def _write(name: str, data: object) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def recording_validator() -> RecordingValidator:
    return RecordingValidator()


def components(*entries) -> List[ComponentInfo]:
    """components(("A", ["B"]), ("B", [])) -> ComponentInfo list."""
    return [ComponentInfo(name, list(deps)) for name, deps in entries]
