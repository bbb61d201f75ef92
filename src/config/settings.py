"""
Pipeline configuration.

Settings are read from a YAML file and then overridden by environment
variables; the result is validated by pydantic so misconfiguration fails
at startup rather than mid-cutover.

Expected YAML format:
```yaml
location:
  cache_enabled: true
  default_store_prefix: "23"
  default_dc_prefix: "9"
  known_locations_file: config/known_locations.yaml

validation:
  strict_mode: false
  max_timestamp_future_hours: 24
  max_timestamp_past_days: 365

cutover:
  enabled: false
  gap_days: 30
  base_url: http://historical-api:8080/api
  batch_size: 1000
  parallel_processing: true
```
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator

DEFAULT_CONFIG_PATH = Path("config") / "pipeline.yaml"


class LocationSettings(BaseModel):
    cache_enabled: bool = True
    default_store_prefix: str = "23"
    default_dc_prefix: str = "9"
    known_locations_file: str | None = None


class ValidationSettings(BaseModel):
    strict_mode: bool = False
    # Consulted only when a classifier is handed to the validator
    allow_unknown_locations: bool = True
    max_timestamp_future_hours: int = Field(24, ge=0)
    max_timestamp_past_days: int = Field(365, ge=0)


class CutoverSettings(BaseModel):
    enabled: bool = False
    gap_days: int = Field(30, ge=0)
    base_url: str | None = None
    batch_size: int = Field(1000, ge=1)
    parallel_processing: bool = True
    fetch_workers: int = Field(5, ge=1)
    parallel_window_days: int = Field(7, ge=1)
    request_timeout_seconds: float = Field(30.0, gt=0)

    @model_validator(mode="after")
    def require_base_url_when_enabled(self):
        if self.enabled and not self.base_url:
            raise ValueError("cutover.base_url is required when cutover is enabled")
        return self


class KafkaSettings(BaseModel):
    bootstrap_servers: str = "localhost:9092"
    topics: list[str] = Field(default_factory=lambda: ["movements"])
    group_id: str = "movement-pipeline"
    starting_offsets: str = "latest"
    checkpoint_location: str = "/tmp/movement-pipeline/checkpoints"
    trigger_interval: str = "10 seconds"


class DatabaseSettings(BaseModel):
    host: str = "localhost"
    port: int = 5432
    name: str = "movements"
    user: str = "pipeline"
    password: str | None = None
    min_pool_size: int = Field(2, ge=1)
    max_pool_size: int = Field(10, ge=1)


class PipelineSettings(BaseModel):
    location: LocationSettings = Field(default_factory=LocationSettings)
    validation: ValidationSettings = Field(default_factory=ValidationSettings)
    cutover: CutoverSettings = Field(default_factory=CutoverSettings)
    kafka: KafkaSettings = Field(default_factory=KafkaSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)


# env var -> (section, key)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "LOCATION_CACHE_ENABLED": ("location", "cache_enabled"),
    "LOCATION_STORE_PREFIX": ("location", "default_store_prefix"),
    "LOCATION_DC_PREFIX": ("location", "default_dc_prefix"),
    "KNOWN_LOCATIONS_FILE": ("location", "known_locations_file"),
    "VALIDATION_STRICT_MODE": ("validation", "strict_mode"),
    "VALIDATION_ALLOW_UNKNOWN_LOCATIONS": ("validation", "allow_unknown_locations"),
    "VALIDATION_MAX_FUTURE_HOURS": ("validation", "max_timestamp_future_hours"),
    "VALIDATION_MAX_PAST_DAYS": ("validation", "max_timestamp_past_days"),
    "CUTOVER_ENABLED": ("cutover", "enabled"),
    "CUTOVER_GAP_DAYS": ("cutover", "gap_days"),
    "HISTORICAL_API_BASE_URL": ("cutover", "base_url"),
    "CUTOVER_BATCH_SIZE": ("cutover", "batch_size"),
    "CUTOVER_PARALLEL_PROCESSING": ("cutover", "parallel_processing"),
    "CUTOVER_FETCH_WORKERS": ("cutover", "fetch_workers"),
    "KAFKA_BOOTSTRAP_SERVERS": ("kafka", "bootstrap_servers"),
    "KAFKA_TOPICS": ("kafka", "topics"),
    "KAFKA_GROUP_ID": ("kafka", "group_id"),
    "KAFKA_CHECKPOINT_LOCATION": ("kafka", "checkpoint_location"),
    "DB_HOST": ("database", "host"),
    "DB_PORT": ("database", "port"),
    "DB_NAME": ("database", "name"),
    "DB_USER": ("database", "user"),
    "DB_PASSWORD": ("database", "password"),
}


def _read_yaml(config_path: Path) -> dict[str, Any]:
    with open(config_path) as f:
        config = yaml.safe_load(f) or {}
    if not isinstance(config, dict):
        raise ValueError(f"Configuration file {config_path} must contain a mapping")
    return config


def _apply_env_overrides(config: dict[str, Any], environ: dict[str, str]) -> dict[str, Any]:
    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value is None or value == "":
            continue
        if key == "topics":
            value = [t.strip() for t in value.split(",") if t.strip()]
        config.setdefault(section, {})
        if config[section] is None:
            config[section] = {}
        # pydantic coerces "true"/"30" strings to the declared field types
        config[section][key] = value
    return config


def load_settings(
    config_path: str | Path | None = None,
    environ: dict[str, str] | None = None,
) -> PipelineSettings:
    """
    Load pipeline settings.

    Args:
        config_path: YAML file (defaults to $PIPELINE_CONFIG, then config/pipeline.yaml);
                     a missing default file yields built-in defaults
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Validated PipelineSettings

    Raises:
        FileNotFoundError: If an explicitly given config file does not exist
        pydantic.ValidationError: If any value is invalid
    """
    environ = dict(os.environ) if environ is None else environ

    explicit = config_path or environ.get("PIPELINE_CONFIG")
    path = Path(explicit) if explicit else DEFAULT_CONFIG_PATH

    config: dict[str, Any] = {}
    if path.exists():
        config = _read_yaml(path)
    elif explicit:
        raise FileNotFoundError(f"Pipeline configuration file not found: {path}")

    config = _apply_env_overrides(config, environ)
    return PipelineSettings.model_validate(config)
