"""YAML configuration loader for relay settings."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_MARKETPLACE_CREATE_URL = "https://www.facebook.com/marketplace/create/vehicle"


class ScrapeRetryPolicy(BaseModel):
    """Re-trigger schedule for scraping partially loaded pages.

    ``delays[i]`` is the settle time awaited before attempt ``i``; the number
    of attempts is ``len(delays)``.
    """

    delays: tuple[float, ...] = Field(
        (1.0, 4.0), min_length=1, description="Seconds to wait before each attempt"
    )

    model_config = ConfigDict(frozen=True)

    @property
    def max_attempts(self) -> int:
        return len(self.delays)


class VinDecoderSettings(BaseModel):
    """Connection settings for the VIN decoding service."""

    base_url: str = "https://vpic.nhtsa.dot.gov/api/vehicles"
    timeout: float = Field(15.0, gt=0)

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class RelaySettings(BaseModel):
    """Process-wide settings, loaded once at startup and passed explicitly.

    Keys may be written in snake_case or camelCase
    (``useAlternateInjection``, ``requireAdminRole``, ``originOverride``).
    """

    use_alternate_injection: bool = Field(
        False, description="Fill inputs with native typing instead of script value injection"
    )
    require_admin_role: bool = Field(
        False, description="Only accept authentication from admin accounts"
    )
    origin_override: str = Field("", description="Extra trusted web-app origin for authentication")
    field_settle_delay: float = Field(0.2, ge=0, description="Seconds to wait after each field")
    inter_task_delay: float = Field(1.2, ge=0, description="Seconds between posting tasks")
    relay_timeout: float = Field(60.0, gt=0, description="Seconds before a relay call fails")
    marketplace_create_url: str = DEFAULT_MARKETPLACE_CREATE_URL
    vin_decoder: VinDecoderSettings = Field(default_factory=VinDecoderSettings)
    scrape_retry: ScrapeRetryPolicy = Field(default_factory=ScrapeRetryPolicy)

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


def _get_default_config_path() -> Path:
    """Get the default config path relative to project root."""
    return Path(__file__).parent.parent.parent / "config" / "settings.yaml"


def _load_raw_config(path: Path | None = None) -> dict[str, Any]:
    """Load raw YAML config from path.

    Args:
        path: Path to YAML config file. If None, uses default config/settings.yaml
            and falls back to an empty config when that file is absent.

    Returns:
        Raw config dictionary.

    Raises:
        FileNotFoundError: If an explicit config path doesn't exist.
        yaml.YAMLError: If YAML parsing fails.
    """
    if path is None:
        path = _get_default_config_path()
        if not path.exists():
            return {}

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r") as f:
        raw_config: dict[str, Any] | None = yaml.safe_load(f)

    return raw_config if raw_config is not None else {}


def load_settings(path: Path | None = None) -> RelaySettings:
    """Load and validate relay settings from YAML.

    Args:
        path: Path to YAML config file. If None, uses default config/settings.yaml.

    Returns:
        Validated RelaySettings instance.

    Raises:
        FileNotFoundError: If an explicit config path doesn't exist.
        yaml.YAMLError: If YAML parsing fails.
        ValidationError: If config doesn't match expected schema.
    """
    raw_config = _load_raw_config(path)
    return RelaySettings.model_validate(raw_config.get("relay", raw_config))


def merge_settings(settings: RelaySettings, overrides: dict[str, Any]) -> RelaySettings:
    """Apply CLI overrides on top of loaded settings.

    None values in ``overrides`` are ignored so unset CLI options keep the
    configured value.
    """
    updates = {key: value for key, value in overrides.items() if value is not None}
    return settings.model_copy(update=updates)
