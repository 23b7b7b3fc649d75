from pathlib import Path

from impact_flow.core.config import DEFAULT_CONFIG_PATH, ImpactFlowConfig, load_config


def test_defaults():
    config = ImpactFlowConfig()

    assert config.damping_factor == 0.85
    assert config.max_iterations == 100
    assert config.tolerance == 1e-4
    assert config.change_type_multipliers == {"contract": 1.5, "implementation": 1.2, "resource": 1.3}
    assert config.contract_multiplier == 1.4
    assert (config.risk_threshold, config.medium_impact_threshold, config.high_impact_threshold) == (0.6, 0.4, 0.7)
    assert config.expected_impact_tolerance == 0.2
    assert config.components_path() is None


def test_load_from_default_path(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    Path(DEFAULT_CONFIG_PATH).write_text("risk_threshold: 0.5\ncontracts_dir: specs/contracts\n", encoding="utf-8")

    config = load_config()

    assert config.risk_threshold == 0.5
    assert config.contracts_path() == tmp_path.resolve() / "specs" / "contracts"


def test_cli_args_override_file(tmp_path):
    config_file = tmp_path / "custom.yaml"
    config_file.write_text("log_level: DEBUG\ncomponents_file: snapshot.yaml\n", encoding="utf-8")

    config = load_config(str(config_file), {"log_level": "WARNING", "components_file": None})

    assert config.log_level == "WARNING"
    assert config.components_file == "snapshot.yaml"


def test_missing_explicit_file_falls_back_to_defaults(tmp_path):
    config = load_config(str(tmp_path / "absent.yaml"))

    assert config == ImpactFlowConfig()


def test_invalid_yaml_falls_back_to_defaults(tmp_path):
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("risk_threshold: [0.5\n", encoding="utf-8")

    config = load_config(str(config_file))

    assert config.risk_threshold == 0.6


def test_absolute_paths_are_kept(tmp_path):
    config = ImpactFlowConfig(project_root="/somewhere", contracts_dir=str(tmp_path), components_file=str(tmp_path / "c.yaml"))

    assert config.contracts_path() == tmp_path
    assert config.components_path() == tmp_path / "c.yaml"
