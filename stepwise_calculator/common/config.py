"""Runtime settings of the calculator."""
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class CalculatorSettings(BaseModel):
    """
    Settings shared by the session, the history store and the CLI.

    Frozen so that the database location cannot change under a running session.
    """

    model_config = ConfigDict(frozen=True)

    db_path: Path = Field(default=Path("calculator.db"), description="SQLite history database file")
    history_limit: int = Field(default=20, ge=1, le=1000, description="Number of history records shown")
    log_level: LogLevel = Field(default="WARNING", description="Logging level of the calculator logger")
