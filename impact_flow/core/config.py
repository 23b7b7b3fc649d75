import yaml
import logging
from typing import List, Optional, Dict, Any
from pathlib import Path
from pydantic import BaseModel, Field

from impact_flow.core.impact_propagator import (
    DEFAULT_DAMPING_FACTOR,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_TOLERANCE,
    DEFAULT_CHANGE_TYPE_MULTIPLIERS,
    DEFAULT_CONTRACT_MULTIPLIER,
)
from impact_flow.core.risk_classifier import (
    DEFAULT_RISK_THRESHOLD,
    DEFAULT_MEDIUM_IMPACT_THRESHOLD,
    DEFAULT_HIGH_IMPACT_THRESHOLD,
)

# Default configuration values
DEFAULT_CONFIG_PATH = "impactflow.config.yaml"
DEFAULT_PROJECT_ROOT = "."
DEFAULT_CONTRACTS_DIR = "contracts"
DEFAULT_LANGUAGE = "python"
DEFAULT_IGNORED_PATTERNS = ["venv", ".venv", "**/__pycache__", ".git", "node_modules"]
DEFAULT_EXPECTED_IMPACT_TOLERANCE = 0.2
DEFAULT_LOG_LEVEL = "INFO"

logger = logging.getLogger(__name__)


class ImpactFlowConfig(BaseModel):
    """
    Central configuration model for impact analysis.
    """
    project_root: str = Field(default=DEFAULT_PROJECT_ROOT)
    components_file: Optional[str] = Field(default=None)
    contracts_dir: str = Field(default=DEFAULT_CONTRACTS_DIR)
    language: str = Field(default=DEFAULT_LANGUAGE)
    ignored_patterns: List[str] = Field(default_factory=lambda: list(DEFAULT_IGNORED_PATTERNS))

    # Diffusion
    damping_factor: float = Field(default=DEFAULT_DAMPING_FACTOR)
    max_iterations: int = Field(default=DEFAULT_MAX_ITERATIONS)
    tolerance: float = Field(default=DEFAULT_TOLERANCE)
    change_type_multipliers: Dict[str, float] = Field(default_factory=lambda: DEFAULT_CHANGE_TYPE_MULTIPLIERS.copy())
    contract_multiplier: float = Field(default=DEFAULT_CONTRACT_MULTIPLIER)

    # Classification
    risk_threshold: float = Field(default=DEFAULT_RISK_THRESHOLD)
    medium_impact_threshold: float = Field(default=DEFAULT_MEDIUM_IMPACT_THRESHOLD)
    high_impact_threshold: float = Field(default=DEFAULT_HIGH_IMPACT_THRESHOLD)

    # Validation
    expected_impact_tolerance: float = Field(default=DEFAULT_EXPECTED_IMPACT_TOLERANCE)

    log_level: str = Field(default=DEFAULT_LOG_LEVEL)

    # Allow extra fields for flexibility
    class Config:
        extra = "allow"

    def root_path(self) -> Path:
        return Path(self.project_root).resolve()

    def contracts_path(self) -> Path:
        path = Path(self.contracts_dir)
        return path if path.is_absolute() else self.root_path() / path

    def components_path(self) -> Optional[Path]:
        if not self.components_file:
            return None
        path = Path(self.components_file)
        return path if path.is_absolute() else self.root_path() / path


def _read_config_file(path: Path) -> Dict[str, Any]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load config file {path}: {e}")
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Ignoring config file {path}: expected a mapping, got {type(data).__name__}")
        return {}
    logger.info(f"Loaded configuration from {path}")
    return data


def load_config(
    config_path: Optional[str] = None,
    cli_args: Optional[Dict[str, Any]] = None
) -> ImpactFlowConfig:
    """
    Resolve the effective configuration.

    CLI overrides win over the config file, which wins over the defaults.
    Overrides whose value is None are skipped so unset flags keep the file value.

    Args:
        config_path: YAML config file; 'impactflow.config.yaml' in the cwd when omitted.
        cli_args: Overrides keyed by ImpactFlowConfig field name.
    """
    path = Path(config_path or DEFAULT_CONFIG_PATH)

    settings: Dict[str, Any] = {}
    if path.is_file():
        settings.update(_read_config_file(path))
    elif config_path:
        logger.warning(f"Config file not found at explicit path: {config_path}")
    else:
        logger.info(f"No {DEFAULT_CONFIG_PATH} in {Path.cwd()}, using defaults")

    settings.update({key: value for key, value in (cli_args or {}).items() if value is not None})
    return ImpactFlowConfig(**settings)
