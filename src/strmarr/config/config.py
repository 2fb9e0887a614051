"""Application configuration management for strmarr.

This module defines the application settings model and a custom settings
source that loads additional values from a YAML file named by one of the
settings fields.
"""

import logging
from pathlib import Path
from typing import Annotated, Any, Literal, Self, cast
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator, model_validator
from pydantic.fields import FieldInfo
from pydantic_core import PydanticUndefined
from pydantic_settings import (
    BaseSettings,
    NoDecode,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)
import yaml

from ..exceptions import ConfigLoadError
from .types import (
    DEFAULT_MOVIE_URL_TEMPLATE,
    DEFAULT_SERIES_URL_TEMPLATE,
    CronExpression,
    StreamUrlTemplate,
)

logger = logging.getLogger(__name__)


class YamlFileFromFieldSource(PydanticBaseSettingsSource):
    """Load configuration from a YAML file specified by a field.

    A settings source that loads configuration from a YAML file whose path is
    itself a settings field (``config_file``). It must run after every source
    that might populate that field.

    Attributes:
        yaml_file_encoding: Encoding to use when reading the YAML file.
        yaml_data: YAML data loaded from the file.
    """

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        yaml_file_encoding: str | None = None,
    ):
        super().__init__(settings_cls)
        self.yaml_file_encoding = yaml_file_encoding or "utf-8"
        self.yaml_data: dict[str, Any] = {}

    def _get_current_state_of(self, field_name: str) -> Any:
        """Resolve a field from the sources processed so far, else its default."""
        value = self.current_state.get(field_name)
        if value not in (None, PydanticUndefined):
            return value

        field_info = self.settings_cls.model_fields[field_name]
        if isinstance(field_info.validation_alias, str):
            value = self.current_state.get(field_info.validation_alias)
            if value not in (None, PydanticUndefined):
                return value
        return field_info.get_default()

    def _get_yaml_path(self) -> Path | None:
        path_value = self._get_current_state_of("config_file")
        match path_value:
            case None:
                return None
            case Path():
                return path_value.expanduser()
            case str() if path_value.strip():
                return Path(path_value).expanduser()
            case str():
                return None
            case _:
                raise TypeError(
                    f"Field 'config_file' must resolve to a Path or string, "
                    f"received type '{type(path_value).__name__}'"
                )

    def _read_yaml_file(self, file_path: Path) -> dict[str, Any]:
        logger.debug(
            "Reading YAML configuration file.",
            extra={"file_path": str(file_path)},
        )
        with Path.open(file_path, encoding=self.yaml_file_encoding) as f:
            loaded_yaml = yaml.safe_load(f)

        match loaded_yaml:
            case dict():
                return cast(dict[str, Any], loaded_yaml)
            case None:
                logger.info(
                    "YAML configuration file is empty.",
                    extra={"file_path": str(file_path)},
                )
                return {}
            case _:
                raise TypeError(
                    f"Invalid YAML config format: expected dict, got {type(loaded_yaml).__name__}"
                )

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        """Get value from loaded YAML data."""
        field_value = self.yaml_data.get(field_name)
        return field_value, field_name, self.field_is_complex(field)

    def __call__(self) -> dict[str, Any]:
        """Load YAML data from the file named by ``config_file``.

        A missing file is not an error: the YAML layer is optional and all
        settings can come from the environment.
        """
        try:
            yaml_path = self._get_yaml_path()
        except TypeError as e:
            raise ConfigLoadError(
                "Failed to resolve YAML configuration file path."
            ) from e

        if yaml_path is None or not yaml_path.exists():
            logger.debug(
                "No YAML configuration file found; skipping YAML loading.",
                extra={"file_path": str(yaml_path) if yaml_path else None},
            )
            self.yaml_data = {}
            return {}

        try:
            self.yaml_data = self._read_yaml_file(yaml_path)
        except (TypeError, OSError, yaml.YAMLError) as e:
            raise ConfigLoadError(
                "Failed to load or parse YAML configuration file.",
                config_file=str(yaml_path),
            ) from e

        # Only keep keys that name a field; YAML uses field names, not env aliases
        return {
            key: value
            for key, value in self.yaml_data.items()
            if key in self.settings_cls.model_fields
        }


class AppSettings(BaseSettings):
    """Application settings.

    Configuration is loaded from init arguments, environment variables (the
    upper-case aliases below), a ``.env`` file, and the YAML file named by
    ``CONFIG_FILE``, in that order of precedence.

    Attributes:
        log_format: Format for application logs (human or json).
        log_level: Logging level for the application.
        log_include_stacktrace: Include full stack traces in error logs.
        sonarr_url: Base URL of the Sonarr instance.
        sonarr_api_key: Sonarr API key.
        radarr_url: Base URL of the Radarr instance, if movies are handled.
        radarr_api_key: Radarr API key.
        provider_username: Streaming provider account name.
        provider_password: Streaming provider account password.
        series_url_template: Stream URL template for episodes.
        movie_url_template: Stream URL template for movies.
        validate_urls: Probe stream URLs before writing artifacts.
        validation_timeout_seconds: Timeout of one link probe.
        error_host_marker: Substring identifying the provider's error host.
        max_retries: Retries after the first attempt of a catalog call.
        retry_delays_ms: Delay table between retries, in milliseconds.
        retryable_status_codes: HTTP statuses retried by catalog calls.
        http_timeout_seconds: Timeout of one catalog HTTP request.
        sweep_workers: Series processed in parallel by a full sweep.
        full_sweep_enabled: Whether the scheduled full series sweep runs.
        full_sweep_schedule: Cron schedule of the full series sweep.
        full_sweep_only_monitored: Restrict the full sweep to monitored series.
        wanted_sweep_enabled: Whether the scheduled wanted/missing sweep runs.
        wanted_sweep_interval_minutes: Minutes between wanted/missing sweeps.
        wanted_page_size: Page size of wanted/missing catalog queries.
        movie_quality_profile: Quality profile name assigned to added movies.
        server_host: Host address for the HTTP server to bind to.
        server_port: Port number for the HTTP server to listen on.
        tz: Timezone used to evaluate cron schedules.
        config_file: Path to the optional YAML config file.
    """

    # Logging
    log_format: Literal["human", "json"] = Field(
        default="json",
        validation_alias="LOG_FORMAT",
        description="Format for application logs ('human' or 'json').",
    )
    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level for the application (e.g., DEBUG, INFO, WARNING, ERROR). Case-insensitive.",
    )
    log_include_stacktrace: bool = Field(
        default=False,
        validation_alias="LOG_INCLUDE_STACKTRACE",
        description="Include full stack traces in error logs (true/false).",
    )

    # Catalogs
    sonarr_url: str | None = Field(
        default=None,
        validation_alias="SONARR_URL",
        description="Base URL of the Sonarr instance (e.g., 'http://sonarr:8989'). Required.",
    )
    sonarr_api_key: str | None = Field(
        default=None,
        validation_alias="SONARR_API_KEY",
        description="Sonarr API key. Required.",
    )
    radarr_url: str | None = Field(
        default=None,
        validation_alias="RADARR_URL",
        description="Base URL of the Radarr instance. Leave unset to handle series only.",
    )
    radarr_api_key: str | None = Field(
        default=None,
        validation_alias="RADARR_API_KEY",
        description="Radarr API key. Required when RADARR_URL is set.",
    )

    # Streaming provider
    provider_username: str | None = Field(
        default=None,
        validation_alias="PROVIDER_USERNAME",
        description="Streaming provider account name. Required.",
    )
    provider_password: str | None = Field(
        default=None,
        validation_alias="PROVIDER_PASSWORD",
        description="Streaming provider account password. Required.",
    )
    series_url_template: StreamUrlTemplate = Field(
        default=StreamUrlTemplate(DEFAULT_SERIES_URL_TEMPLATE),
        validation_alias="SERIES_URL_TEMPLATE",
        description="Episode stream URL with {username} {password} {imdbId} {season} {episode} placeholders.",
    )
    movie_url_template: StreamUrlTemplate = Field(
        default=StreamUrlTemplate(DEFAULT_MOVIE_URL_TEMPLATE),
        validation_alias="MOVIE_URL_TEMPLATE",
        description="Movie stream URL with {username} {password} {imdbId} placeholders.",
    )
    validate_urls: bool = Field(
        default=True,
        validation_alias="VALIDATE_URLS",
        description="Probe each stream URL with a HEAD request before writing its .strm file.",
    )
    validation_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        validation_alias="VALIDATION_TIMEOUT_SECONDS",
        description="Timeout of one stream URL probe, in seconds.",
    )
    error_host_marker: str = Field(
        default="error.starlite.best",
        validation_alias="ERROR_HOST_MARKER",
        description="A probe redirected to a URL containing this text is treated as invalid.",
    )

    # Retries
    max_retries: int = Field(
        default=5,
        ge=0,
        validation_alias="MAX_RETRIES",
        description="Retries after the first attempt of a catalog API call.",
    )
    retry_delays_ms: Annotated[list[int], NoDecode] = Field(
        default_factory=lambda: [2000, 3000, 5000, 8000, 10000],
        validation_alias="RETRY_DELAYS_MS",
        description="Delay table in milliseconds; retry i waits delays[min(i, len-1)]. Comma-separated in env.",
    )
    retryable_status_codes: Annotated[list[int], NoDecode] = Field(
        default_factory=lambda: [404, 503],
        validation_alias="RETRYABLE_STATUS_CODES",
        description="HTTP status codes that trigger a retry. Comma-separated in env.",
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        validation_alias="HTTP_TIMEOUT_SECONDS",
        description="Timeout of one catalog API request, in seconds.",
    )

    # Sweeps
    sweep_workers: int = Field(
        default=4,
        ge=1,
        validation_alias="SWEEP_WORKERS",
        description="Number of series a full sweep processes in parallel.",
    )
    full_sweep_enabled: bool = Field(
        default=True,
        validation_alias="FULL_SWEEP_ENABLED",
        description="Run the scheduled full series sweep.",
    )
    full_sweep_schedule: Annotated[CronExpression, NoDecode] = Field(
        default=CronExpression("0 * * * *"),
        validation_alias="FULL_SWEEP_SCHEDULE",
        description="Cron schedule of the full series sweep (default: hourly at minute 0).",
    )
    full_sweep_only_monitored: bool = Field(
        default=True,
        validation_alias="FULL_SWEEP_ONLY_MONITORED",
        description="Restrict the full sweep to series that are already monitored.",
    )
    wanted_sweep_enabled: bool = Field(
        default=True,
        validation_alias="WANTED_SWEEP_ENABLED",
        description="Run the scheduled wanted/missing sweep (also runs once at startup).",
    )
    wanted_sweep_interval_minutes: int = Field(
        default=15,
        validation_alias="WANTED_SWEEP_INTERVAL_MINUTES",
        description="Minutes between wanted/missing sweeps. Values below 1 are raised to 1.",
    )
    wanted_page_size: int = Field(
        default=100,
        ge=1,
        validation_alias="WANTED_PAGE_SIZE",
        description="Page size of wanted/missing catalog queries.",
    )
    movie_quality_profile: str | None = Field(
        default=None,
        validation_alias="MOVIE_QUALITY_PROFILE",
        description="Quality profile name assigned to movies added through the webhook.",
    )

    # Server
    server_host: str = Field(
        default="0.0.0.0",
        validation_alias="SERVER_HOST",
        description="Host address for the HTTP server to bind to.",
    )
    server_port: int = Field(
        default=8080,
        validation_alias="SERVER_PORT",
        description="Port number for the HTTP server to listen on.",
    )
    tz: ZoneInfo | None = Field(
        default=None,
        validation_alias="TZ",
        description="Timezone used to evaluate cron schedules (e.g., 'America/New_York'). Defaults to the system timezone.",
    )

    config_file: Path | None = Field(
        default=Path("/config/strmarr.yaml"),
        validation_alias="CONFIG_FILE",
        description="Path to the optional YAML config file.",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        yaml_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("series_url_template", "movie_url_template", mode="before")
    @classmethod
    def parse_url_template(cls, v: Any) -> StreamUrlTemplate:
        """Parse a template string into a StreamUrlTemplate.

        Args:
            v: Value to parse, can be string or StreamUrlTemplate.

        Returns:
            StreamUrlTemplate instance.

        Raises:
            ValueError: If the template is empty or has unknown placeholders.
            TypeError: If the value is not a string or StreamUrlTemplate.
        """
        match v:
            case StreamUrlTemplate():
                return v
            case str():
                return StreamUrlTemplate(v)
            case _:
                raise TypeError(
                    f"URL template must be a string, got {type(v).__name__}"
                )

    @field_validator("retry_delays_ms", "retryable_status_codes", mode="before")
    @classmethod
    def parse_int_list(cls, v: Any) -> list[int]:
        """Parse a comma-separated string or a list into a list of ints.

        Args:
            v: Value to parse.

        Returns:
            List of integers.

        Raises:
            ValueError: If the result is empty or contains non-integers.
            TypeError: If the value is not a string or list.
        """
        match v:
            case str() as s:
                items = [item.strip() for item in s.strip("[] ").split(",")]
                values = [int(item) for item in items if item]
            case list() | tuple():
                values = [int(item) for item in cast(list[Any], v)]
            case _:
                raise TypeError(f"expected a list of integers, got {type(v).__name__}")
        if not values:
            raise ValueError("list cannot be empty")
        if any(value < 0 for value in values):
            raise ValueError(f"values must be non-negative, got {values}")
        return values

    @field_validator("full_sweep_schedule", mode="before")
    @classmethod
    def parse_schedule(cls, v: Any) -> CronExpression:
        """Parse the full sweep schedule into a CronExpression.

        A bare integer is shorthand for "hourly at that minute".

        Args:
            v: Value to parse, can be string, int, or CronExpression.

        Returns:
            CronExpression instance.

        Raises:
            ValueError: If the schedule cannot be parsed.
            TypeError: If the value has an unsupported type.
        """
        match v:
            case CronExpression():
                return v
            case int():
                return CronExpression.hourly_at(v)
            case str() if v.strip().isdigit():
                return CronExpression.hourly_at(int(v.strip()))
            case str() if v.strip():
                return CronExpression(v)
            case str():
                raise ValueError("Schedule cannot be empty")
            case _:
                raise TypeError(
                    f"schedule must be a cron expression or a minute, got {type(v).__name__}"
                )

    @field_validator("wanted_sweep_interval_minutes", mode="after")
    @classmethod
    def clamp_interval(cls, v: int) -> int:
        """Raise intervals below one minute to one minute."""
        return max(1, v)

    @field_validator("tz", mode="before")
    @classmethod
    def parse_timezone_string(cls, v: Any) -> ZoneInfo | None:
        """Parse timezone string into a ZoneInfo object.

        Args:
            v: Value to parse, can be string or None.

        Returns:
            ZoneInfo object for the timezone, or None if not provided.

        Raises:
            ValueError: If the timezone string is invalid.
            TypeError: If the value is not a string or None.
        """
        match v:
            case None:
                return None
            case ZoneInfo():
                return v
            case str() as s if not s.strip():
                return None
            case str() as s:
                try:
                    return ZoneInfo(s.strip())
                except ZoneInfoNotFoundError as e:
                    raise ValueError(
                        f"Invalid timezone string '{s}'. Must be a valid timezone name (e.g., 'America/New_York', 'UTC')."
                    ) from e
            case _:
                raise TypeError(f"tz must be a string, got {type(v).__name__}")

    @model_validator(mode="after")
    def validate_radarr_pair(self) -> Self:
        """Reject a Radarr URL without an API key and vice versa."""
        if bool(self.radarr_url) != bool(self.radarr_api_key):
            raise ValueError(
                "RADARR_URL and RADARR_API_KEY must be set together (or both left unset)."
            )
        return self

    @property
    def radarr_enabled(self) -> bool:
        """Whether movie handling is configured."""
        return bool(self.radarr_url and self.radarr_api_key)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize the order and sources for settings loading.

        Init parameters, environment variables and the ``.env`` file are
        processed first so they can set ``config_file``; the YAML source then
        reads that file. Earlier sources take precedence.

        Args:
            settings_cls: The settings class being configured.
            init_settings: Settings from initialization parameters.
            env_settings: Settings from environment variables.
            dotenv_settings: Settings from .env files.
            file_secret_settings: Settings from secret files.

        Returns:
            Tuple of settings sources in the order they should be processed.
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlFileFromFieldSource(settings_cls=settings_cls),
            file_secret_settings,
        )
