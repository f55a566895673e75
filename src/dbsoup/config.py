"""Configuration management for dbsoup.

Settings come from `DBSOUP_*` environment variables (or a `.env` file in the
working directory) and fall back to the defaults below.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from dbsoup.render.generator import GeneratorConfig
from dbsoup.schema.heuristics import HeuristicRules

LogLevel = Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]


class DBSoupConfig(BaseSettings):
    """Process-wide settings for the CLI and library defaults."""

    log_level: LogLevel = Field(default="WARNING", description="Log level for stderr output")
    log_file: Optional[str] = Field(default=None, description="Optional log file path")

    # Formatter column layout
    field_name_width: int = Field(default=20, gt=0)
    data_type_width: int = Field(default=25, gt=0)
    constraint_column_start: int = Field(default=45, gt=0)

    # Heuristic thresholds
    min_entity_fields: int = Field(default=3, ge=0)
    max_json_properties: int = Field(default=2, ge=0)

    model_config = SettingsConfigDict(
        env_prefix="DBSOUP_",
        env_file=".env",
        extra="ignore",
    )

    def generator_config(self, **overrides) -> GeneratorConfig:
        """Formatter settings seeded with this config's column widths."""
        options = {
            "field_name_width": self.field_name_width,
            "data_type_width": self.data_type_width,
            "constraint_column_start": self.constraint_column_start,
        }
        options.update(overrides)
        return GeneratorConfig(**options)

    def heuristic_rules(self) -> HeuristicRules:
        return HeuristicRules(
            min_entity_fields=self.min_entity_fields,
            max_json_properties=self.max_json_properties,
        )


@lru_cache
def get_config() -> DBSoupConfig:
    """Return the cached process-wide configuration."""
    return DBSoupConfig()
