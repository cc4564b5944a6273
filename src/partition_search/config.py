"""Centralized configuration for partition-search using Pydantic Settings."""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from partition_search.search.analyzers import available_analyzers


class Settings(BaseSettings):
    """Strictly typed configuration loaded from ``PARTITION_SEARCH_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PARTITION_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Index artifacts
    index_dir: Path = Field(default=Path("indexdir"), description="Directory holding the partitioned index")
    directory_file: str = Field(
        default="index_dir.json", description="Partition directory artifact, relative to index_dir"
    )
    docs_file: str = Field(default="docs.json", description="Document store artifact, relative to index_dir")
    popularity_file: Path | None = Field(
        default=None, description="Optional JSON mapping of URL to popularity rank"
    )

    # Query evaluation
    analyzer: str = Field(default="alphanumeric", description="Query analyzer; must match the index builder")
    max_results: int = Field(default=5, ge=1, description="Maximum number of results per query")
    scoring: Literal["cosine", "dot"] = Field(
        default="cosine", description="cosine normalizes the tf-idf dot product, dot returns it raw"
    )

    # Cache warm-up
    warm_partitions: bool = Field(default=False, description="Load every partition at startup")
    warm_terms: str = Field(default="", description="Comma-separated frequent terms to resolve at startup")

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")

    @field_validator("analyzer")
    @classmethod
    def _check_analyzer(cls, value: str) -> str:
        normalized = value.lower()
        if normalized not in available_analyzers():
            raise ValueError(f"Unknown analyzer '{value}'. Available: {available_analyzers()}")
        return normalized

    def resolve_artifact(self, name: str | Path) -> Path:
        """Resolve an index artifact path relative to ``index_dir`` unless absolute."""
        path = Path(name)
        return path if path.is_absolute() else self.index_dir / path

    @property
    def directory_path(self) -> Path:
        return self.resolve_artifact(self.directory_file)

    @property
    def docs_path(self) -> Path:
        return self.resolve_artifact(self.docs_file)

    def get_warm_terms(self) -> list[str]:
        """Get list of terms to preload (comma-separated)."""
        if not self.warm_terms:
            return []
        return [term.strip() for term in self.warm_terms.split(",") if term.strip()]
