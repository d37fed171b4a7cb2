"""Centralized configuration for sitesmith using Pydantic Settings."""

from pathlib import Path
from urllib.parse import urljoin

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strictly typed configuration loaded from ``SITESMITH_*`` environment variables.

    Values can also come from a local ``.env`` file. Everything is validated
    when the settings object is created, so a bad page size or debounce delay
    fails the build before any content is read.
    """

    model_config = SettingsConfigDict(
        env_prefix="SITESMITH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Content source
    content_dir: Path = Field(default=Path("content"), description="Directory of Markdown content files")
    output_dir: Path = Field(default=Path("_site"), description="Directory build artifacts are written to")
    content_tag: str = Field(default="posts", description="Tag marking items that belong to the content collection")

    # Tag pages
    tag_page_size: int = Field(default=10, ge=1, description="Maximum posts per tag page")
    tags_base_path: str = Field(default="/tags/", description="URL prefix for tag page permalinks")
    utility_tags: str = Field(
        default="all,posts",
        description="Comma-separated tags that never get their own tag pages",
    )

    # Search
    site_base_url: str = Field(default="http://localhost:8080/", description="Root URL the site is served from")
    search_index_path: str = Field(default="/search-index.json", description="Site-relative path of the index")
    search_debounce_ms: int = Field(default=200, ge=0, description="Delay before a keystroke triggers a search")
    search_fetch_timeout: float = Field(default=10.0, gt=0, description="HTTP timeout for the index fetch")
    search_include_content: bool = Field(default=False, description="Index item body text as the content field")
    tag_pages_manifest: str = Field(default="tag-pages.json", description="Output file name of the tag page manifest")

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")
    trace_spans: bool = Field(default=False, description="Print finished OpenTelemetry spans to stderr")

    @field_validator("tags_base_path")
    @classmethod
    def _normalize_base_path(cls, value: str) -> str:
        value = value.strip() or "/"
        if not value.startswith("/"):
            value = "/" + value
        if not value.endswith("/"):
            value += "/"
        return value

    def get_utility_tags(self) -> list[str]:
        """Get list of utility tags excluded from tag grouping."""
        if not self.utility_tags:
            return []
        return [tag.strip() for tag in self.utility_tags.split(",") if tag.strip()]

    def search_index_url(self) -> str:
        """Absolute URL the runtime engine fetches the index from."""
        return urljoin(self.site_base_url, self.search_index_path)

    def search_index_file(self) -> Path:
        """Location of the index artifact inside the output directory."""
        return self.output_dir / self.search_index_path.lstrip("/")
