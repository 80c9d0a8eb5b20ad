from datetime import date, time
from typing import List, Sequence

from pydantic import BaseModel, ConfigDict, Field

from .enums import GameType, Gender

RAW_FIELD_COUNT = 15

DATE_FORMAT = "%d.%m.%Y"
TIME_FORMAT = "%H:%M:%S"


class RawRecord(BaseModel):
    """One line of the league schedule export, split into its positional fields."""

    model_config = ConfigDict(frozen=True)  # Make instances immutable

    date: str
    time: str
    weekday: str
    number: str  # Sequence number of the game within the stage
    stage: str  # "Staffel"
    team_1: str
    team_2: str
    referee: str  # Officiating team ("Schiedsgericht")
    host: str
    venue_result: str  # Venue and result combined in one column
    venue: str
    result: str
    season: str
    round: str  # "Spieltag"
    category: str

    @classmethod
    def from_fields(cls, fields: Sequence[str]) -> "RawRecord":
        """Builds a record from the first 15 fields of a split line.

        Raises:
            ValueError: If fewer than 15 fields are given.
        """
        if len(fields) < RAW_FIELD_COUNT:
            raise ValueError(
                f"Expected at least {RAW_FIELD_COUNT} fields, got {len(fields)}"
            )
        names = list(cls.model_fields)
        return cls(**dict(zip(names, fields[:RAW_FIELD_COUNT])))


class OutputRecord(BaseModel):
    """One game row in the team-management import format."""

    model_config = ConfigDict(frozen=True)

    game_type: GameType = Field(..., title="Spieltyp")
    opponent: str = Field(..., title="Gegner")
    start_date: date = Field(..., title="Startdatum")
    end_date: date = Field(..., title="Enddatum")
    start_time: time = Field(..., title="Startzeit")
    end_time: time = Field(..., title="Endzeit")
    meeting_time: time = Field(..., title="Treffpunkt")
    home_game: bool = Field(..., title="Heimspiel")
    venue: str = Field(..., title="Spielort")
    address: str = Field(..., title="Adresse")
    info: str = Field(..., title="Infos zum Spiel")
    nomination: str = Field(..., title="Nominierung")
    attendance: str = Field(..., title="Teilnahme")
    response_deadline_hours: int = Field(
        ..., ge=0, title="Zu-/Absagen bis (Std. vorher)"
    )
    reminder_hours: int = Field(
        ..., ge=0, title="Erinnerung zum Zu-/Absagen (Std. vorher)"
    )
    season: str = Field("", title="Saison")
    gender: Gender = Field(Gender.UNKNOWN, title="Geschlecht")
    result: str = Field("", title="Ergebnis")

    @classmethod
    def columns(cls) -> List[str]:
        """Export header names, in field order."""
        return [field.title or name for name, field in cls.model_fields.items()]

    def to_row(self) -> List[object]:
        """Cell values in the same order as ``columns()``."""
        return [
            self.game_type.value,
            self.opponent,
            self.start_date.strftime(DATE_FORMAT),
            self.end_date.strftime(DATE_FORMAT),
            self.start_time.strftime(TIME_FORMAT),
            self.end_time.strftime(TIME_FORMAT),
            self.meeting_time.strftime(TIME_FORMAT),
            "Ja" if self.home_game else "Nein",
            self.venue,
            self.address,
            self.info,
            self.nomination,
            self.attendance,
            self.response_deadline_hours,
            self.reminder_hours,
            self.season,
            self.gender.value,
            self.result,
        ]
