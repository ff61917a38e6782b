"""Centralized configuration for docs-search using Pydantic Settings."""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from docs_search.search.query import DEFAULT_LIMIT, DEFAULT_TEASER_WORD_COUNT, SearchOptions


class Settings(BaseSettings):
    """Strictly typed configuration loaded from ``DOCS_SEARCH_*`` environment variables.

    Values seed the default ``SearchOptions`` written into new artifacts and
    used by the CLI; explicit command-line flags override them.
    """

    model_config = SettingsConfigDict(
        env_prefix="DOCS_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    json_logs: bool = Field(default=False, description="Emit structured JSON log lines on stderr")

    # Results
    limit_results: int = Field(default=DEFAULT_LIMIT, ge=1, description="Maximum number of results per query")
    teaser_word_count: int = Field(
        default=DEFAULT_TEASER_WORD_COUNT, ge=1, description="Number of words in each result teaser"
    )
    highlight: Literal["html", "plain", "none"] = Field(
        default="html", description="How matched words are marked inside teasers"
    )

    # Query semantics
    combine_with: Literal["AND", "OR"] = Field(default="OR", description="How query terms combine")
    expand: bool = Field(default=True, description="Also match indexed tokens that start with a query token")
    normalize_field_length: bool = Field(
        default=True, description="Scale field scores by 1/sqrt(field length)"
    )

    # Field boosts
    title_boost: float = Field(default=2.0, gt=0, description="Score multiplier for title matches")
    body_boost: float = Field(default=1.0, gt=0, description="Score multiplier for body matches")
    breadcrumbs_boost: float = Field(default=1.0, gt=0, description="Score multiplier for breadcrumb matches")

    # Storage
    index_path: Path = Field(default=Path("searchindex.json"), description="Default artifact path")

    @field_validator("combine_with", mode="before")
    @classmethod
    def _upper_combine_with(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value

    def field_boosts(self) -> dict[str, float]:
        """Boosts for the default documentation fields."""
        return {
            "title": self.title_boost,
            "body": self.body_boost,
            "breadcrumbs": self.breadcrumbs_boost,
        }

    def search_options(self) -> SearchOptions:
        return SearchOptions(
            combine_with=self.combine_with,
            expand=self.expand,
            limit=self.limit_results,
            teaser_word_count=self.teaser_word_count,
            normalize_field_length=self.normalize_field_length,
            highlight=self.highlight,
        )
