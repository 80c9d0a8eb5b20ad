from typing import Callable, Dict, List

import pytest
from loguru import logger

from schedule_export.config.settings import AppSettings
from schedule_export.models.records import RawRecord
from schedule_export.repair.text_repair import RuleBasedTextCorrector
from schedule_export.transform.row_transformer import RowTransformer
from schedule_export.travel.estimator import TravelEstimator

HOME_TEAM = "VfB Oberweißbach"
HOME_VENUE = "Sporthalle Oberweißbach (98744 Oberweißbach)"

HEADER = (
    "Datum;Uhrzeit;Tag;#;Staffel;Mannschaft 1;Mannschaft 2;Schiedsgericht;"
    "Gastgeber;Austragungsort/Ergebnis;Austragungsort;Ergebnis;Saison;Spieltag;Spielrunde"
)

DEFAULT_ROW: Dict[str, str] = {
    "date": "20.09.2025",
    "time": "11:00:00",
    "weekday": "Sa",
    "number": "1",
    "stage": "Landesliga Damen",
    "team_1": HOME_TEAM,
    "team_2": "OpponentX",
    "referee": "SV Schwarza",
    "host": HOME_TEAM,
    "venue_result": "Sporthalle (07747 Jena)",
    "venue": "Sporthalle (07747 Jena)",
    "result": "",
    "season": "2025/26",
    "round": "1. Spieltag",
    "category": "Meisterschaft",
}


@pytest.fixture
def settings_factory(tmp_path) -> Callable[..., AppSettings]:
    def factory(**overrides) -> AppSettings:
        values = {
            "home_team_name": HOME_TEAM,
            "home_team_venue": HOME_VENUE,
            "input_dir": tmp_path,
            "output_path": tmp_path / "spielplan_export.xlsx",
            "correction_api_key": None,
            "distance_api_key": None,
        }
        values.update(overrides)
        return AppSettings(_env_file=None, **values)

    return factory


@pytest.fixture
def settings(settings_factory) -> AppSettings:
    return settings_factory()


@pytest.fixture
def make_line() -> Callable[..., str]:
    def factory(**fields: str) -> str:
        values = dict(DEFAULT_ROW)
        values.update(fields)
        return ";".join(f'"{values[name]}"' for name in RawRecord.model_fields)

    return factory


@pytest.fixture
def transformer(settings) -> RowTransformer:
    return RowTransformer(settings, RuleBasedTextCorrector(), TravelEstimator())


@pytest.fixture
def log_messages() -> List[str]:
    """Collects loguru messages emitted during the test."""
    messages: List[str] = []
    handler_id = logger.add(
        lambda message: messages.append(message.record["message"]), level="DEBUG"
    )
    yield messages
    logger.remove(handler_id)
