import sys
import argparse
from pathlib import Path
from typing import List, Optional, Tuple

from loguru import logger

from schedule_export.config.settings import AppSettings, load_settings
from schedule_export.logging.setup import setup_logging
from schedule_export.models.state import ServiceState
from schedule_export.clients.base_client import BaseClient
from schedule_export.clients.correction_client import CallBudget, CorrectionClient
from schedule_export.clients.distance_client import DistanceClient
from schedule_export.repair.rules import load_rules_file
from schedule_export.repair.text_repair import (
    RemoteTextCorrector,
    RuleBasedTextCorrector,
    TextCorrector,
)
from schedule_export.travel.estimator import (
    DistanceProvider,
    RemoteDistanceProvider,
    StaticDistanceProvider,
    TravelEstimator,
)
from schedule_export.transform.reader import (
    InputFileNotFoundError,
    find_input_file,
    read_schedule_lines,
)
from schedule_export.transform.row_transformer import RowTransformer
from schedule_export.export.exporter import export
from schedule_export.summary.run_summary import print_summary


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Convert a league schedule export into a team-management import sheet."
    )
    parser.add_argument("--config", default=".env", help="KEY=VALUE settings file.")
    parser.add_argument("--input", default=None, help="Schedule export to convert.")
    parser.add_argument("--output", default=None, help="Spreadsheet to write.")
    return parser.parse_args(argv)


def build_corrector(
    settings: AppSettings, state: ServiceState
) -> Tuple[TextCorrector, List[BaseClient]]:
    """Local rule chain, wrapped by the remote corrector when a key is configured."""
    extra_rules = (
        load_rules_file(settings.repair_rules_file) if settings.repair_rules_file else []
    )
    corrector: TextCorrector = RuleBasedTextCorrector(extra_rules=extra_rules)
    clients: List[BaseClient] = []
    if settings.correction_enabled:
        client = CorrectionClient(
            api_key=settings.correction_api_key,
            api_url=settings.correction_api_url,
            model=settings.correction_model,
            budget=CallBudget(state, settings.correction_calls_per_minute),
        )
        clients.append(client)
        corrector = RemoteTextCorrector(corrector, client, state)
        logger.info("Remote text correction enabled.")
    return corrector, clients


def build_estimator(
    settings: AppSettings, state: ServiceState
) -> Tuple[TravelEstimator, List[BaseClient]]:
    """Static table, wrapped by the remote lookup when a key is configured."""
    provider: DistanceProvider = StaticDistanceProvider(
        default_minutes=settings.default_travel_minutes
    )
    clients: List[BaseClient] = []
    if settings.distance_enabled:
        client = DistanceClient(
            api_key=settings.distance_api_key, api_url=settings.distance_api_url
        )
        clients.append(client)
        provider = RemoteDistanceProvider(provider, client, state)
        logger.info("Remote distance lookup enabled.")
    return TravelEstimator(provider), clients


def run(settings: AppSettings, input_path: Optional[Path] = None) -> int:
    """Runs one conversion and returns the process exit code."""
    try:
        if input_path is not None:
            if not input_path.is_file():
                raise InputFileNotFoundError(f"Input file {input_path} does not exist")
        else:
            input_path = find_input_file(
                settings.input_dir,
                settings.input_pattern,
                exclude=[settings.output_path, settings.output_path.with_suffix(".csv")],
            )
    except InputFileNotFoundError as e:
        logger.critical(f"{e}. Nothing to convert.")
        return 1

    logger.info(f"Converting {input_path} for team '{settings.home_team_name}'")
    state = ServiceState()
    corrector, correction_clients = build_corrector(settings, state)
    estimator, distance_clients = build_estimator(settings, state)
    try:
        transformer = RowTransformer(settings, corrector, estimator)
        result = transformer.transform_lines(read_schedule_lines(input_path))
    finally:
        for client in correction_clients + distance_clients:
            client.close()

    written_path = export(result.records, settings.output_path)
    print_summary(result, written_path, state)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    args = parse_args(argv)
    settings = load_settings(args.config)
    if args.output:
        settings.output_path = Path(args.output)
    setup_logging(settings)

    return run(settings, Path(args.input) if args.input else None)


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        logger.info("Execution interrupted by user (KeyboardInterrupt).")
        sys.exit(0)
    except Exception as e:
        logger.exception(f"Unhandled exception in main execution: {e}")
        sys.exit(1)
