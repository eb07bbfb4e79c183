"""Pydantic configuration models for docbrowse."""

from pathlib import Path
from typing import Any, ClassVar, Literal, Optional

from pydantic import BaseModel, Field


class ByteSize(int):
    """
    Custom type that parses human-readable byte sizes.

    Accepts:
        - Integers (bytes)
        - Strings like '200kb', '1mb', '5gb'

    Examples:
        >>> ByteSize._parse('200kb')
        204800
        >>> ByteSize._parse('1mb')
        1048576
        >>> ByteSize._parse(1024)
        1024
    """

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any, handler: Any) -> Any:
        from pydantic_core import core_schema

        return core_schema.no_info_plain_validator_function(cls._parse)

    @classmethod
    def _parse(cls, v: Any) -> int:
        if isinstance(v, int):
            return v
        if isinstance(v, str):
            v = v.lower().strip()
            # Order matters: check longer suffixes first
            units = [("gb", 1024**3), ("mb", 1024**2), ("kb", 1024), ("b", 1)]
            for unit, mult in units:
                if v.endswith(unit):
                    num_str = v[: -len(unit)].strip()
                    try:
                        return int(float(num_str) * mult)
                    except ValueError as err:
                        raise ValueError(f"Invalid number in byte size: {v}") from err
            try:
                return int(v)
            except ValueError:
                pass
        raise ValueError(f"Invalid byte size: {v}. Use format like '200kb', '1mb', or integer bytes.")


class BrowserSettings(BaseModel):
    """
    Process-wide settings that shape how documents are fetched and derived.

    Example:
        settings = BrowserSettings(send_accept_markdown=False)
        settings.fetch_affecting_change(BrowserSettings())  # True
    """

    FETCH_AFFECTING: ClassVar[tuple[str, ...]] = ("send_accept_markdown", "auto_convert")

    send_accept_markdown: bool = Field(
        True,
        description="Ask servers for text/markdown ahead of HTML",
    )
    auto_convert: bool = Field(
        True,
        description="Derive Markdown from HTML when the server does not offer it",
    )
    allow_javascript: bool = Field(
        False,
        description="Allow script execution in rendered HTML views",
    )

    model_config = {"extra": "forbid"}

    def fetch_affecting_change(self, other: "BrowserSettings") -> bool:
        """Check whether switching from other to self changes fetched content."""
        return any(getattr(self, name) != getattr(other, name) for name in self.FETCH_AFFECTING)


class NetworkConfig(BaseModel):
    """Configuration for HTTP client and network behavior."""

    user_agent: Optional[str] = Field(None, description="Custom User-Agent header")
    proxy: Optional[str] = Field(None, description="HTTP/HTTPS proxy URL")
    max_retries: int = Field(3, ge=0, description="Maximum retry attempts for transient failures")
    timeout: float = Field(30.0, gt=0, description="Total request timeout in seconds")
    max_content_size: ByteSize = Field(
        ByteSize(50 * 1024 * 1024),
        description="Maximum response size (e.g., '10mb')",
    )
    search_url: str = Field(
        "https://duckduckgo.com/?q={query}",
        description="Template used when the address bar input is not a URL",
    )
    block_private_addresses: bool = Field(
        False,
        description="Reject navigation to localhost and private IP ranges",
    )

    model_config = {"extra": "forbid"}


class BrowserConfig(BaseModel):
    """
    Root configuration model for docbrowse.

    Example:
        config = BrowserConfig(
            settings=BrowserSettings(auto_convert=False),
            network=NetworkConfig(timeout=10),
        )

    YAML format:
        start_url: docbrowse://start
        settings:
          send_accept_markdown: true
        network:
          max_retries: 1
    """

    settings: BrowserSettings = Field(default_factory=BrowserSettings)
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    start_url: Optional[str] = Field(None, description="URL opened in the first tab on startup")

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "WARNING",
        description="Logging level",
    )
    log_file: Optional[Path] = Field(None, description="Log file path")

    model_config = {"extra": "forbid"}

    def to_yaml(self) -> str:
        """Serialize config to YAML string."""
        import yaml

        return yaml.dump(self.model_dump(mode="json", exclude_none=True), default_flow_style=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "BrowserConfig":
        """Load config from YAML string."""
        import yaml

        data = yaml.safe_load(yaml_str) or {}
        return cls.model_validate(data)

    @classmethod
    def from_yaml_file(cls, path: Path) -> "BrowserConfig":
        """Load config from YAML file."""
        return cls.from_yaml(path.read_text())
