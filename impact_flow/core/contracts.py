"""
YAML contract documents and their validation.

Each contract type has its own pydantic schema; documents are parsed into the
schema for the requested type, and structural problems are reported as error
strings on a ValidationResult instead of raising.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Optional, Protocol, Tuple, Type, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from impact_flow.core.errors import CollaboratorError, ContractNotFoundError

logger = logging.getLogger(__name__)

CONTRACT_EXTENSIONS = (".yaml", ".yml")
DEFAULT_CONTRACT_TYPE = "interface"


@dataclass
class ValidationResult:
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        self.errors.append(message)
        self.is_valid = False

    def merge(self, other: "ValidationResult") -> None:
        self.is_valid = self.is_valid and other.is_valid
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)


class ContractValidator(Protocol):
    async def validate_contract(self, contract: str, contract_type: str) -> ValidationResult:
        ...


# --- Contract schemas ---

def _scalar_to_str(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class _Entry(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # "inputs:" with no value means the same as leaving the key out
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data

    @field_validator("*", mode="before")
    @classmethod
    def _stringify_scalars(cls, value: Any) -> Any:
        return _scalar_to_str(value)


class TypedField(_Entry):
    name: Optional[str] = None
    type: Optional[str] = None


class Parameter(TypedField):
    required: Optional[bool] = None


class Operation(_Entry):
    name: Optional[str] = None
    description: Optional[str] = None
    parameters: List[Parameter] = Field(default_factory=list)
    return_type: Optional[str] = Field(default=None, alias="returnType")


class ConcurrencyRule(_Entry):
    type: Optional[str] = None
    description: Optional[str] = None


class PerformanceConstraint(_Entry):
    metric: Optional[str] = None
    threshold: Optional[str] = None


class ResourceRequirement(_Entry):
    type: Optional[str] = None
    specification: Optional[str] = None


class AccessPattern(_Entry):
    type: Optional[str] = None
    description: Optional[str] = None


class ScalingRule(_Entry):
    trigger: Optional[str] = None
    action: Optional[str] = None


class ContractDocument(_Entry):
    """Fields shared by every contract type."""
    label: ClassVar[str] = "Contract"

    name: Optional[str] = None
    version: Optional[str] = None

    def check(self) -> List[str]:
        errors = []
        if not self.name:
            errors.append(f"{self.label} contract must have a name")
        if self.version is None:
            errors.append(f"{self.label} contract must have a version")
        return errors


class InterfaceContract(ContractDocument):
    label: ClassVar[str] = "Interface"

    inputs: List[TypedField] = Field(default_factory=list)
    outputs: List[TypedField] = Field(default_factory=list)
    extension_points: Optional[List[Any]] = Field(default=None, alias="extensionPoints")

    def check(self) -> List[str]:
        errors = super().check()
        if any(not i.name or not i.type for i in self.inputs):
            errors.append("Interface inputs must have name and type")
        if any(not o.name or not o.type for o in self.outputs):
            errors.append("Interface outputs must have name and type")
        return errors


class BehaviorContract(ContractDocument):
    label: ClassVar[str] = "Behavior"

    operations: List[Operation] = Field(default_factory=list)
    concurrency_rules: List[ConcurrencyRule] = Field(default_factory=list, alias="concurrencyRules")
    performance_constraints: List[PerformanceConstraint] = Field(default_factory=list, alias="performanceConstraints")

    def check(self) -> List[str]:
        errors = super().check()
        if any(not op.name or not op.description for op in self.operations):
            errors.append("Operations must have name and description")
        if any(not r.type or not r.description for r in self.concurrency_rules):
            errors.append("Concurrency rules must have type and description")
        if any(not c.metric or c.threshold is None for c in self.performance_constraints):
            errors.append("Performance constraints must have metric and threshold")
        return errors


class ResourceContract(ContractDocument):
    label: ClassVar[str] = "Resource"

    resource_requirements: List[ResourceRequirement] = Field(default_factory=list, alias="resourceRequirements")
    access_patterns: List[AccessPattern] = Field(default_factory=list, alias="accessPatterns")
    scaling_rules: List[ScalingRule] = Field(default_factory=list, alias="scalingRules")

    def check(self) -> List[str]:
        errors = super().check()
        if any(not r.type or r.specification is None for r in self.resource_requirements):
            errors.append("Resource requirements must have type and specification")
        if any(not p.type or not p.description for p in self.access_patterns):
            errors.append("Access patterns must have type and description")
        if any(not r.trigger or not r.action for r in self.scaling_rules):
            errors.append("Scaling rules must have trigger and action")
        return errors


CONTRACT_SCHEMAS: Dict[str, Type[ContractDocument]] = {
    "interface": InterfaceContract,
    "behavior": BehaviorContract,
    "resource": ResourceContract,
}

# Friendlier messages for structural errors on specific keys
_FIELD_MESSAGES = {
    "extensionPoints": "Extension points must be a list",
    "extension_points": "Extension points must be a list",
}


def parse_contract(
    data: Dict[str, Any], schema: Type[ContractDocument], result: ValidationResult
) -> Optional[ContractDocument]:
    """Parse ``data`` into ``schema``, recording structural problems on ``result``."""
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        for error in e.errors():
            loc = error.get("loc") or ()
            head = str(loc[0]) if loc else ""
            message = _FIELD_MESSAGES.get(head)
            if message is None:
                location = ".".join(str(part) for part in loc) or "<root>"
                message = f"{schema.label} contract is malformed at {location}: {error.get('msg')}"
            if message not in result.errors:
                result.add_error(message)
        return None


def parse_version(value: Optional[str]) -> Optional[Tuple[int, ...]]:
    """Parse a dotted numeric version ("1.2" or "1.2.3"); None if invalid."""
    if value is None:
        return None
    parts = str(value).strip().split(".")
    if not 2 <= len(parts) <= 4 or not all(part.isdigit() for part in parts):
        return None
    numbers = tuple(int(part) for part in parts)
    return numbers + (0,) * (4 - len(numbers))


# --- File-backed validator ---

class YamlContractValidator:
    """Validates contract documents stored as YAML files under ``contracts_dir``."""

    def __init__(self, contracts_dir: Union[str, Path]):
        self.contracts_dir = Path(contracts_dir)

    def resolve(self, contract: str) -> Path:
        """Accept a path to a contract file or a bare contract name."""
        direct = Path(contract)
        if direct.is_file():
            return direct
        for ext in CONTRACT_EXTENSIONS:
            candidate = self.contracts_dir / f"{contract}{ext}"
            if candidate.is_file():
                return candidate
        raise ContractNotFoundError(contract)

    @staticmethod
    def list_contract_files(target: Path) -> List[Path]:
        if target.is_file():
            return [target]
        if target.is_dir():
            return sorted(p for p in target.rglob("*") if p.suffix in CONTRACT_EXTENSIONS)
        raise ContractNotFoundError(str(target), f"Contract path not found: {target}")

    async def validate_contract(self, contract: str, contract_type: str) -> ValidationResult:
        logger.info(f"Validating contract: {contract} of type: {contract_type}")
        path = await asyncio.to_thread(self.resolve, contract)
        data = await self._read_document(path)

        result = ValidationResult()
        schema = CONTRACT_SCHEMAS.get((contract_type or "").lower())
        if schema is None:
            result.add_error(f"Unknown contract type: {contract_type}")
            return result

        document = parse_contract(data, schema, result)
        if document is not None:
            for message in document.check():
                result.add_error(message)
        return result

    async def validate_contracts(self, path: Union[str, Path]) -> ValidationResult:
        """Validate one contract file or every YAML contract below a directory."""
        files = await asyncio.to_thread(self.list_contract_files, Path(path))

        result = ValidationResult()
        for contract_file in files:
            data = await self._read_document(contract_file)
            contract_type = self.determine_contract_type(contract_file, data)
            result.merge(await self.validate_contract(str(contract_file), contract_type))
        return result

    async def validate_contract_evolution(self, old_contract: str, new_contract: str) -> ValidationResult:
        logger.info(f"Validating contract evolution from {old_contract} to {new_contract}")
        old_data = await self._read_document(await asyncio.to_thread(self.resolve, old_contract))
        new_data = await self._read_document(await asyncio.to_thread(self.resolve, new_contract))

        result = ValidationResult()
        old_base = parse_contract(old_data, ContractDocument, result)
        new_base = parse_contract(new_data, ContractDocument, result)
        if old_base is None or new_base is None:
            return result

        self._validate_version_evolution(old_base.version, new_base.version, result)
        if old_base.name != new_base.name:
            result.add_error("Contract names must match")

        if "inputs" in old_data and "inputs" in new_data:
            old_iface = parse_contract(old_data, InterfaceContract, result)
            new_iface = parse_contract(new_data, InterfaceContract, result)
            if old_iface and new_iface:
                self._validate_interface_compatibility(old_iface, new_iface, result)

        if "operations" in old_data and "operations" in new_data:
            old_behavior = parse_contract(old_data, BehaviorContract, result)
            new_behavior = parse_contract(new_data, BehaviorContract, result)
            if old_behavior and new_behavior:
                self._validate_behavior_compatibility(old_behavior, new_behavior, result)

        if "resourceRequirements" in old_data and "resourceRequirements" in new_data:
            old_resource = parse_contract(old_data, ResourceContract, result)
            new_resource = parse_contract(new_data, ResourceContract, result)
            if old_resource and new_resource:
                self._validate_resource_compatibility(old_resource, new_resource, result)

        return result

    @staticmethod
    def determine_contract_type(path: Path, data: Dict[str, Any]) -> str:
        stem = path.stem.lower()
        for contract_type in CONTRACT_SCHEMAS:
            if contract_type in stem:
                return contract_type
        declared = data.get("type")
        if isinstance(declared, str) and declared.lower() in CONTRACT_SCHEMAS:
            return declared.lower()
        return DEFAULT_CONTRACT_TYPE

    async def _read_document(self, path: Path) -> Dict[str, Any]:
        try:
            content = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise CollaboratorError(f"Unable to read contract {path}: {e}") from e
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise CollaboratorError(f"Invalid YAML syntax in contract {path}: {e}") from e
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise CollaboratorError(f"Contract {path} must be a mapping at the top level")
        return data

    @staticmethod
    def _validate_version_evolution(old: Optional[str], new: Optional[str], result: ValidationResult) -> None:
        old_version = parse_version(old)
        new_version = parse_version(new)
        if old_version is None or new_version is None:
            result.add_error("Invalid version format")
            return
        if new_version <= old_version:
            result.add_error("New version must be greater than old version")
        if new_version[0] > old_version[0]:
            result.warnings.append("Major version change detected - breaking changes expected")

    @staticmethod
    def _validate_interface_compatibility(
        old: InterfaceContract, new: InterfaceContract, result: ValidationResult
    ) -> None:
        new_inputs = {i.name for i in new.inputs}
        removed_inputs = [i.name for i in old.inputs if i.name not in new_inputs]
        if removed_inputs:
            result.add_error(f"Breaking change: Removed inputs: {', '.join(removed_inputs)}")

        new_outputs = {o.name for o in new.outputs}
        removed_outputs = [o.name for o in old.outputs if o.name not in new_outputs]
        if removed_outputs:
            result.warnings.append(f"Potentially breaking change: Removed outputs: {', '.join(removed_outputs)}")

    @staticmethod
    def _validate_behavior_compatibility(
        old: BehaviorContract, new: BehaviorContract, result: ValidationResult
    ) -> None:
        new_ops = {op.name: op for op in new.operations}
        removed = [op.name for op in old.operations if op.name not in new_ops]
        if removed:
            result.add_error(f"Breaking change: Removed operations: {', '.join(removed)}")

        for old_op in old.operations:
            new_op = new_ops.get(old_op.name)
            if new_op is not None and not _signatures_compatible(old_op, new_op):
                result.add_error(f"Breaking change: Modified operation signature: {old_op.name}")

    @staticmethod
    def _validate_resource_compatibility(
        old: ResourceContract, new: ResourceContract, result: ValidationResult
    ) -> None:
        old_reqs = {req.type: req for req in old.resource_requirements}
        for new_req in new.resource_requirements:
            old_req = old_reqs.get(new_req.type)
            if old_req is not None and _has_increased_requirements(old_req, new_req):
                result.warnings.append(f"Increased resource requirements for: {new_req.type}")


def _signatures_compatible(old: Operation, new: Operation) -> bool:
    new_params = {p.name: p for p in new.parameters}
    for old_param in old.parameters:
        new_param = new_params.get(old_param.name)
        if new_param is None or new_param.type != old_param.type:
            return False
    if old.return_type is not None and new.return_type is not None and old.return_type != new.return_type:
        return False
    return True


def _has_increased_requirements(old: ResourceRequirement, new: ResourceRequirement) -> bool:
    if old.specification is None or new.specification is None:
        return False
    try:
        return float(new.specification) > float(old.specification)
    except ValueError:
        return old.specification.lower() != new.specification.lower()
