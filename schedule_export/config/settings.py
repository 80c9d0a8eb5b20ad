import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class AppSettings(BaseSettings):
    """Application settings loaded from a KEY=VALUE file or environment variables."""

    # Team Configuration
    home_team_name: str = Field(
        "VfB Oberweißbach", description="Team whose schedule is exported."
    )
    home_team_venue: str = Field(
        "Sporthalle Oberweißbach (98744 Oberweißbach)",
        description="Home venue, used as the origin for away travel estimates.",
    )

    # Deadlines attached to every exported game
    response_deadline_hours: int = Field(
        168, ge=0, description="Hours before the game that responses are due."
    )
    reminder_hours: int = Field(
        336, ge=0, description="Hours before the game that a reminder is sent."
    )

    # Scheduling Constants
    game_duration_hours: int = Field(
        8, ge=0, description="Hours added to the start time to get the end time."
    )
    home_meeting_offset_minutes: int = Field(
        120, ge=0, description="Minutes before a home game that players meet."
    )
    away_buffer_minutes: int = Field(
        60, ge=0, description="Minutes added on top of the travel time for away games."
    )
    default_travel_minutes: int = Field(
        90, ge=0, description="Travel estimate used when no table entry matches."
    )

    # Fixed export columns
    nomination: str = Field("Ja", description="Value of the nomination column.")
    attendance: str = Field("Nein", description="Value of the attendance column.")

    # Remote text correction (OpenAI-compatible chat completions)
    correction_api_key: Optional[str] = Field(
        None, description="API key for the text correction service."
    )
    correction_api_url: str = Field(
        "https://api.openai.com/v1/chat/completions",
        description="Chat completions endpoint for the text correction service.",
    )
    correction_model: str = Field(
        "gpt-4o-mini", description="Model used by the text correction service."
    )
    correction_calls_per_minute: int = Field(
        20, ge=1, description="Maximum number of correction calls per minute."
    )

    # Remote distance lookup (Distance Matrix API)
    distance_api_key: Optional[str] = Field(
        None, description="API key for the distance service."
    )
    distance_api_url: str = Field(
        "https://maps.googleapis.com/maps/api/distancematrix/json",
        description="Distance Matrix endpoint.",
    )

    # Text repair
    repair_rules_file: Optional[Path] = Field(
        None, description="Optional file with extra 'pattern;replacement' rules."
    )

    # Input / Output
    input_dir: Path = Field(Path("."), description="Directory searched for the input.")
    input_pattern: str = Field(
        "Spielplan*.csv", description="Glob pattern of the input file."
    )
    output_path: Path = Field(
        Path("spielplan_export.xlsx"), description="Spreadsheet written by the run."
    )

    # Logging Configuration
    log_level: str = Field(
        "INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."
    )

    # Pydantic Settings Configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @property
    def correction_enabled(self) -> bool:
        return bool(self.correction_api_key)

    @property
    def distance_enabled(self) -> bool:
        return bool(self.distance_api_key)


def load_settings(env_file: Optional[Union[str, Path]] = ".env") -> AppSettings:
    """Loads and validates application settings.

    A missing ``env_file`` is not an error; the defaults (and environment
    variables) are used instead.
    """
    try:
        settings = AppSettings(_env_file=env_file)
        log_level_upper = settings.log_level.upper()
        # Validate log_level even if loaded from the config file
        if log_level_upper not in VALID_LOG_LEVELS:
            logging.warning(
                f"Invalid LOG_LEVEL '{settings.log_level}' found in config or default. Using INFO."
            )
            settings.log_level = "INFO"
        else:
            settings.log_level = log_level_upper
        return settings
    except ValidationError as e:
        logging.exception(f"Error loading application settings: {e}")
        raise SystemExit("Failed to load application settings. Exiting.")
