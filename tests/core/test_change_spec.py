import json

import pytest
import yaml

from impact_flow.core.change_spec import (
    dump_result,
    dump_scores,
    load_change_specification,
    parse_change_specification,
)
from impact_flow.core.errors import InputError, ToleranceWarning
from impact_flow.core.models import ImpactAnalysisResult, RiskArea, RiskType


def test_parse_camel_case_document():
    change = parse_change_specification(
        """
component: PaymentService
changeType: Contract
changes:
  summary: add currency field
affectedContracts: [PaymentAPI]
expectedImpact:
  PaymentService: 0.9
"""
    )

    assert change.component == "PaymentService"
    assert change.change_type == "contract"
    assert change.changes == {"summary": "add currency field"}
    assert change.affected_contracts == ("PaymentAPI",)
    assert change.expected_impact == {"PaymentService": 0.9}


def test_optional_keys_default_to_empty():
    change = parse_change_specification("component: X\naffectedContracts:\nexpectedImpact:\n")

    assert change.change_type == "other"
    assert change.affected_contracts == ()
    assert change.expected_impact == {}
    assert change.changes == {}


@pytest.mark.parametrize(
    "content",
    [
        "component: [unclosed",
        "- just\n- a list\n",
        "changeType: contract\n",
        "component: X\nexpectedImpact:\n  X: high\n",
    ],
)
def test_invalid_documents_raise_input_error(content):
    with pytest.raises(InputError, match="Error loading change specification"):
        parse_change_specification(content)


def test_load_missing_file(tmp_path):
    with pytest.raises(InputError, match="Error loading change specification"):
        load_change_specification(tmp_path / "nope.yaml")


def test_load_from_disk(write_yaml):
    path = write_yaml("change.yaml", {"component": "Inventory", "changeType": "resource"})

    change = load_change_specification(path)

    assert change.component == "Inventory"
    assert change.change_type == "resource"


def _result(warnings=()):
    return ImpactAnalysisResult(
        impact_scores={"A": 1.0},
        risk_areas=[RiskArea("A", RiskType.HIGH_IMPACT, 1.0, "High risk of breaking changes affecting A")],
        suggested_mitigations=["Phase implementation for A"],
        affected_components={"high": ["A"], "medium": [], "low": []},
        tolerance_warnings=list(warnings),
    )


def test_dump_result_yaml_uses_camel_case_keys():
    data = yaml.safe_load(dump_result(_result()))

    assert list(data) == ["impactScores", "riskAreas", "suggestedMitigations", "affectedComponents"]
    assert data["riskAreas"][0]["riskType"] == "HighImpact"


def test_dump_result_json_includes_tolerance_warnings():
    warning = ToleranceWarning(component="A", expected=0.5, actual=1.0, tolerance=0.2)

    data = json.loads(dump_result(_result([warning]), "json"))

    assert data["toleranceWarnings"] == [{"component": "A", "expected": 0.5, "actual": 1.0, "tolerance": 0.2}]
    assert warning.message == "Impact mismatch for A: Expected 0.50, Actual 1.00"


def test_dump_scores():
    assert json.loads(dump_scores({"A": 0.5}, "json")) == {"impactScores": {"A": 0.5}}


def test_unknown_format_is_rejected():
    with pytest.raises(ValueError):
        dump_scores({}, "xml")


def test_undecodable_file_is_input_error(tmp_path):
    path = tmp_path / "change.yaml"
    path.write_bytes(b"component: \xff\xfe\n")

    with pytest.raises(InputError, match="Error loading change specification"):
        load_change_specification(path)
