import re
from datetime import datetime, timedelta
from typing import Iterable, List, Tuple

from loguru import logger
from pydantic import BaseModel, Field

from schedule_export.config.settings import AppSettings
from schedule_export.models.enums import GameType, Gender
from schedule_export.models.records import (
    DATE_FORMAT,
    RAW_FIELD_COUNT,
    TIME_FORMAT,
    OutputRecord,
    RawRecord,
)
from schedule_export.repair.text_repair import TextCorrector, matches_damaged
from schedule_export.travel.estimator import TravelEstimator
from .reader import split_line

MIDNIGHT = "00:00:00"
# Games listed at midnight have no confirmed start yet
DEFAULT_START_TIME = "11:00:00"

INFO_SEPARATOR = " | "

ADDRESS_RE = re.compile(r"\(([^)]*)\)")

GAME_TYPE_KEYWORDS: Tuple[Tuple[str, GameType], ...] = (
    ("pokal", GameType.CUP),
    ("freundschaft", GameType.FRIENDLY),
)

GENDER_KEYWORDS: Tuple[Tuple[str, Gender], ...] = (
    ("mixed", Gender.MIXED),
    ("damen", Gender.FEMALE),
    ("frauen", Gender.FEMALE),
    ("weiblich", Gender.FEMALE),
    ("herren", Gender.MALE),
    ("männer", Gender.MALE),
    ("männlich", Gender.MALE),
)


class RowRejected(Exception):
    """A row that cannot be turned into an output record."""

    pass


class TransformResult(BaseModel):
    """Records produced from one input file plus per-row bookkeeping."""

    records: List[OutputRecord] = Field(default_factory=list)
    total_rows: int = 0
    dropped: int = 0  # Malformed rows
    skipped: int = 0  # Rows of other teams

    @property
    def home_games(self) -> int:
        return sum(1 for record in self.records if record.home_game)

    @property
    def away_games(self) -> int:
        return len(self.records) - self.home_games


def classify_game_type(*texts: str) -> GameType:
    combined = " ".join(texts).lower()
    for keyword, game_type in GAME_TYPE_KEYWORDS:
        if keyword in combined:
            return game_type
    return GameType.LEAGUE


def classify_gender(*texts: str) -> Gender:
    combined = " ".join(texts).lower()
    for keyword, gender in GENDER_KEYWORDS:
        if keyword in combined:
            return gender
    return Gender.UNKNOWN


def split_venue(venue_text: str) -> Tuple[str, str]:
    """Splits ``"Halle (07747 Jena)"`` into name and address."""
    match = ADDRESS_RE.search(venue_text)
    if not match:
        return venue_text, venue_text
    name = ADDRESS_RE.sub("", venue_text).strip(" ,")
    address = match.group(1).strip()
    return name or address, address


class RowTransformer:
    """Turns schedule export lines into records for the configured team."""

    def __init__(
        self,
        settings: AppSettings,
        corrector: TextCorrector,
        estimator: TravelEstimator,
    ):
        self.settings = settings
        self.corrector = corrector
        self.estimator = estimator

    def parse(self, line: str) -> RawRecord:
        fields = split_line(line)
        if len(fields) < RAW_FIELD_COUNT:
            raise RowRejected(f"only {len(fields)} of {RAW_FIELD_COUNT} fields")
        record = RawRecord.from_fields(fields)
        if not record.date or not record.team_1:
            raise RowRejected("missing date or first team")
        return record

    def _is_home_team(self, team: str) -> bool:
        # Local comparison only; rows of other teams never reach the corrector
        return matches_damaged(team, self.settings.home_team_name)

    def is_relevant(self, raw: RawRecord) -> bool:
        return self._is_home_team(raw.team_1) or self._is_home_team(raw.team_2)

    def _start(self, raw: RawRecord) -> datetime:
        raw_time = DEFAULT_START_TIME if raw.time == MIDNIGHT else raw.time
        try:
            game_date = datetime.strptime(raw.date, DATE_FORMAT).date()
            game_time = datetime.strptime(raw_time, TIME_FORMAT).time()
        except ValueError as e:
            raise RowRejected(
                f"unparseable date/time '{raw.date} {raw.time}': {e}"
            ) from e
        return datetime.combine(game_date, game_time)

    def _info(self, raw: RawRecord) -> str:
        parts = (
            ("Staffel", raw.stage),
            ("Spieltag", raw.round),
            ("Spiel-Nr.", raw.number),
            ("Schiedsgericht", raw.referee),
        )
        return INFO_SEPARATOR.join(
            f"{label}: {self.corrector.repair(value)}" for label, value in parts if value
        )

    def derive(self, raw: RawRecord) -> OutputRecord:
        """Computes the output record for a row of the configured team."""
        if self._is_home_team(raw.team_1) and self._is_home_team(raw.team_2):
            raise RowRejected("home team listed as both teams")

        start = self._start(raw)
        end = start + timedelta(hours=self.settings.game_duration_hours)

        home_game = self._is_home_team(raw.team_1)
        opponent = raw.team_2 if home_game else raw.team_1
        venue_text = self.corrector.repair(raw.venue or raw.venue_result)

        if home_game:
            lead_minutes = self.settings.home_meeting_offset_minutes
        else:
            travel = self.estimator.estimate(self.settings.home_team_venue, venue_text)
            lead_minutes = travel + self.settings.away_buffer_minutes
        meeting = start - timedelta(minutes=lead_minutes)

        venue, address = split_venue(venue_text)

        return OutputRecord(
            game_type=classify_game_type(raw.stage, raw.category),
            opponent=self.corrector.repair(opponent),
            start_date=start.date(),
            end_date=end.date(),
            start_time=start.time(),
            end_time=end.time(),
            meeting_time=meeting.time(),
            home_game=home_game,
            venue=venue,
            address=address,
            info=self._info(raw),
            nomination=self.settings.nomination,
            attendance=self.settings.attendance,
            response_deadline_hours=self.settings.response_deadline_hours,
            reminder_hours=self.settings.reminder_hours,
            season=self.corrector.repair(raw.season),
            gender=classify_gender(raw.stage, raw.category),
            result=raw.result,
        )

    def transform_lines(self, lines: Iterable[str]) -> TransformResult:
        """Transforms all data lines; the first line is the header."""
        result = TransformResult()
        for line_number, line in enumerate(lines, start=1):
            if line_number == 1 or not line.strip():
                continue
            result.total_rows += 1
            try:
                raw = self.parse(line)
                if not self.is_relevant(raw):
                    result.skipped += 1
                    logger.debug(
                        f"Line {line_number}: not a game of {self.settings.home_team_name}"
                    )
                    continue
                result.records.append(self.derive(raw))
            except RowRejected as e:
                result.dropped += 1
                logger.warning(f"Dropping line {line_number}: {e}")

        logger.info(
            f"Transformed {result.total_rows} rows: {len(result.records)} games, "
            f"{result.skipped} other teams, {result.dropped} dropped"
        )
        return result

