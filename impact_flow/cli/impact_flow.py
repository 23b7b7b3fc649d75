"""
Command-line entry point for change impact analysis.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from impact_flow.core.change_spec import OUTPUT_FORMATS, dump_result, dump_scores, load_change_specification
from impact_flow.core.config import ImpactFlowConfig, load_config
from impact_flow.core.contracts import YamlContractValidator
from impact_flow.core.errors import ContractComplianceError, ImpactFlowError
from impact_flow.core.impact_analyzer import create_analyzer
from impact_flow.core.models import ImpactAnalysisResult


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _resolve_config(args: argparse.Namespace) -> ImpactFlowConfig:
    cli_overrides = {}
    if getattr(args, "project_root", None):
        cli_overrides['project_root'] = str(Path(args.project_root).resolve())
    if getattr(args, "components", None):
        cli_overrides['components_file'] = str(Path(args.components).resolve())
    if getattr(args, "contracts_dir", None):
        cli_overrides['contracts_dir'] = str(Path(args.contracts_dir).resolve())
    if getattr(args, "log_level", None):
        cli_overrides['log_level'] = args.log_level

    config = load_config(config_path=getattr(args, "config", None), cli_args=cli_overrides)
    _configure_logging(config.log_level)
    return config


def _emit(text: str, output: Optional[str]) -> None:
    if output:
        output_path = Path(output)
        output_path.write_text(text, encoding="utf-8")
        print(f"📄 Impact report exported to {output_path}", file=sys.stderr)
    else:
        print(text, end="" if text.endswith("\n") else "\n")


def _run_analyze(args: argparse.Namespace) -> int:
    config = _resolve_config(args)
    analyzer = create_analyzer(config)
    result = asyncio.run(analyzer.analyze_change_impact(args.change_spec))
    _emit(dump_result(result, args.format), args.output)
    return 0


def _run_validate(args: argparse.Namespace) -> int:
    config = _resolve_config(args)
    analyzer = create_analyzer(config)
    try:
        result: ImpactAnalysisResult = asyncio.run(analyzer.validate_change(args.change_spec))
    except ContractComplianceError as e:
        if e.result is not None:
            _emit(dump_result(e.result, args.format), args.output)
        raise

    for warning in result.tolerance_warnings:
        print(f"⚠️  {warning.message}", file=sys.stderr)
    _emit(dump_result(result, args.format), args.output)
    return 0


def _run_scores(args: argparse.Namespace) -> int:
    config = _resolve_config(args)
    analyzer = create_analyzer(config)
    change = load_change_specification(args.change_spec)
    scores = asyncio.run(analyzer.calculate_impact_scores(change))
    _emit(dump_scores(scores, args.format), None)
    return 0


def _run_contracts(args: argparse.Namespace) -> int:
    config = _resolve_config(args)
    validator = YamlContractValidator(config.contracts_path())
    result = asyncio.run(validator.validate_contracts(args.path))

    for warning in result.warnings:
        print(f"⚠️  {warning}", file=sys.stderr)
    if not result.is_valid:
        for error in result.errors:
            print(f"❌ {error}", file=sys.stderr)
        return 1
    print("✅ Contracts are valid")
    return 0


def _add_common_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="Path to configuration YAML file (default: impactflow.config.yaml)")
    parser.add_argument("--project-root", help="Root of the codebase to scan (overrides config)")
    parser.add_argument("--components",
                        help="YAML component snapshot to use instead of scanning the project sources.")
    parser.add_argument("--contracts-dir", help="Directory holding contract documents (overrides config)")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level (default: INFO)")


def _add_format_flags(parser: argparse.ArgumentParser, with_output: bool = True) -> None:
    parser.add_argument("--format", choices=list(OUTPUT_FORMATS), default="yaml", help="Output format.")
    if with_output:
        parser.add_argument("--output", help="Write the report to a file instead of stdout.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="impact-flow: predict the blast radius of a proposed change."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Analyze the impact of a change specification")
    analyze.add_argument("change_spec", help="Path to the change specification YAML file")
    _add_common_flags(analyze)
    _add_format_flags(analyze)
    analyze.set_defaults(func=_run_analyze)

    validate = subparsers.add_parser("validate", help="Analyze a change and validate contracts and expected impact")
    validate.add_argument("change_spec", help="Path to the change specification YAML file")
    _add_common_flags(validate)
    _add_format_flags(validate)
    validate.set_defaults(func=_run_validate)

    scores = subparsers.add_parser("scores", help="Print raw impact scores only")
    scores.add_argument("change_spec", help="Path to the change specification YAML file")
    _add_common_flags(scores)
    _add_format_flags(scores, with_output=False)
    scores.set_defaults(func=_run_scores)

    contracts = subparsers.add_parser("contracts", help="Validate a contract file or directory")
    contracts.add_argument("path", help="Contract file or directory of contracts")
    _add_common_flags(contracts)
    contracts.set_defaults(func=_run_contracts)

    return parser


def main(argv=None):
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        exit_code = args.func(args)
        sys.exit(exit_code)
    except ImpactFlowError as e:
        print(f"❌ {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"\n❌ An unexpected error occurred: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc(file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
