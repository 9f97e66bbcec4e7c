"""Feed client configuration models.

All settings are pydantic models with ``Field`` constraints, so a YAML
file or dict is validated once at startup. Invalid input raises
[ConfigurationError][relayfeed.core.exceptions.ConfigurationError].

See Also:
    [FeedClient][relayfeed.services.feed.FeedClient]: The facade that
        consumes [FeedConfig][relayfeed.services.configs.FeedConfig].
    [load_yaml()][relayfeed.core.yaml.load_yaml]: Safe YAML parsing used by
        [FeedConfig.from_yaml()][relayfeed.services.configs.FeedConfig.from_yaml].

Examples:
    ```yaml
    relays:
      - url: wss://relay.damus.io
      - url: wss://nos.lol
        write: false
    multiplexer:
      timeout: 2.0
    safe_mode: true
    ```
"""

from __future__ import annotations

from pathlib import Path  # noqa: TC003
from typing import Any, Self

from pydantic import BaseModel, Field, ValidationError, ValidationInfo, field_validator

from relayfeed.core.exceptions import ConfigurationError
from relayfeed.core.metrics import MetricsConfig
from relayfeed.core.yaml import load_yaml
from relayfeed.models.constants import DEFAULT_RELAY_URL
from relayfeed.models.relay import RelayConfig, RelayEndpoint, normalize_relay_url


class RelayEndpointConfig(BaseModel):
    """One configured relay with NIP-65 read/write markers."""

    url: str = Field(description="Relay WebSocket URL (ws:// or wss://)")
    read: bool = Field(default=True, description="Send queries to this relay")
    write: bool = Field(default=True, description="Publish to this relay")

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Normalize the URL, rejecting non-WebSocket schemes."""
        return normalize_relay_url(v)

    def to_endpoint(self) -> RelayEndpoint:
        return RelayEndpoint(self.url, read=self.read, write=self.write)


class MultiplexerConfig(BaseModel):
    """Fan-out settings for [RelayGroup][relayfeed.services.multiplexer.RelayGroup].

    Note:
        ``timeout`` is the aggregate deadline shared by every relay of one
        query. Interactive views keep it short; the relay-list sync uses
        its own longer timeout.
    """

    default_relay: str = Field(
        default=DEFAULT_RELAY_URL, description="Relay used when no readable relay is configured"
    )
    timeout: float = Field(default=1.5, ge=0.1, le=30.0, description="Aggregate query timeout")
    sync_timeout: float = Field(
        default=5.0, ge=0.1, le=60.0, description="Relay-list sync query timeout"
    )

    @field_validator("default_relay")
    @classmethod
    def validate_default_relay(cls, v: str) -> str:
        """Normalize the default relay URL."""
        return normalize_relay_url(v)


class CacheConfig(BaseModel):
    """Query result cache limits."""

    stale_time: float = Field(default=300.0, ge=0.0, description="Seconds before an entry is stale")
    max_entries: int = Field(default=1024, ge=1, le=1_000_000, description="Maximum cached queries")


class RetryConfig(BaseModel):
    """Bounded retry policy applied above the core (profile lookups).

    Note:
        Exponential backoff doubles the delay each attempt:
        ``initial_delay * 2^attempt``, capped at ``max_delay``. Linear
        backoff increases linearly: ``initial_delay * (attempt + 1)``.
    """

    max_attempts: int = Field(default=3, ge=1, le=10, description="Max attempts")
    initial_delay: float = Field(default=0.5, ge=0.0, description="Initial retry delay")
    max_delay: float = Field(default=5.0, ge=0.0, description="Maximum retry delay")
    exponential_backoff: bool = Field(default=True, description="Use exponential backoff")

    @field_validator("max_delay")
    @classmethod
    def validate_max_delay(cls, v: float, info: ValidationInfo) -> float:
        """Ensure max_delay >= initial_delay."""
        initial_delay = info.data.get("initial_delay", 0.5)
        if v < initial_delay:
            raise ValueError(f"max_delay ({v}) must be >= initial_delay ({initial_delay})")
        return v

    def delay(self, attempt: int) -> float:
        """Backoff before retry number ``attempt + 1`` (``attempt`` is 0-based)."""
        if self.exponential_backoff:
            delay = self.initial_delay * (2**attempt)
        else:
            delay = self.initial_delay * (attempt + 1)
        return min(delay, self.max_delay)


class LayoutConfig(BaseModel):
    """Masonry layout parameters.

    Heights are in abstract pixels. A note's estimated height is
    ``min(max_height, base_height + chars_factor * len(content))``.
    """

    columns: int = Field(default=3, ge=1, le=4, description="Column count")
    settle_delay: float = Field(
        default=0.5, ge=0.0, le=10.0, description="Wait before measuring rendered columns"
    )
    resize_delay: float = Field(
        default=0.2, ge=0.0, le=10.0, description="Debounce window for resize events"
    )
    imbalance_threshold: float = Field(
        default=0.2, gt=0.0, lt=1.0, description="Relative height spread that triggers correction"
    )
    initial_height: float = Field(default=300.0, gt=0.0, description="Assumed seed item height")
    base_height: float = Field(default=200.0, ge=0.0, description="Estimate for an empty note")
    max_height: float = Field(default=800.0, gt=0.0, description="Estimate cap")
    chars_factor: float = Field(default=0.5, ge=0.0, description="Estimate growth per character")
    gap: float = Field(default=16.0, ge=0.0, description="Vertical gap between items")
    placement_height: float = Field(
        default=300.0, gt=0.0, description="Height added per note when correcting from measurements"
    )

    @field_validator("max_height")
    @classmethod
    def validate_max_height(cls, v: float, info: ValidationInfo) -> float:
        """Ensure max_height >= base_height."""
        base_height = info.data.get("base_height", 200.0)
        if v < base_height:
            raise ValueError(f"max_height ({v}) must be >= base_height ({base_height})")
        return v


class FeedConfig(BaseModel):
    """Top-level configuration of a [FeedClient][relayfeed.services.feed.FeedClient].

    An empty ``relays`` list means "use the default relay" until a relay
    list is synced.
    """

    relays: list[RelayEndpointConfig] = Field(
        default_factory=list, description="Initial relay list"
    )
    multiplexer: MultiplexerConfig = Field(default_factory=MultiplexerConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    feed_limit: int = Field(default=100, ge=1, le=1000, description="Notes per feed query")
    reaction_limit: int = Field(default=500, ge=1, le=5000, description="Reactions per note")
    reply_limit: int = Field(default=100, ge=1, le=1000, description="Replies per note")
    safe_mode: bool = Field(default=False, description="Hide notes flagged as NSFW")

    def relay_config(self) -> RelayConfig:
        """Initial [RelayConfig][relayfeed.models.relay.RelayConfig] for the store."""
        if not self.relays:
            return RelayConfig(endpoints=(RelayEndpoint(self.multiplexer.default_relay),))
        return RelayConfig(endpoints=tuple(r.to_endpoint() for r in self.relays))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Validate a configuration dictionary.

        Raises:
            ConfigurationError: If validation fails.
        """
        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid feed configuration: {e}") from e

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> Self:
        """Load and validate a YAML configuration file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigurationError: If the YAML or its contents are invalid.
        """
        return cls.from_dict(load_yaml(config_path))
