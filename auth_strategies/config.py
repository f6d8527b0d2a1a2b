import datetime
import logging
import os
import sys
from typing import Any, Dict
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import ConfigDict, ValidationError, field_validator
from pydantic_settings import BaseSettings

from .strategy_name import StrategyName

logger = logging.getLogger(__name__)

MAX_JWT_EXPIRY_SECONDS = 365 * 24 * 3600


class Settings(BaseSettings):
    model_config = ConfigDict(
        env_ignore_empty=False,
        case_sensitive=False  # Make env vars case-insensitive
    )

    logging_level: str = "INFO"
    timezone: str = "UTC"
    host: str = "0.0.0.0"
    port: int = 8000

    # Bearer tokens issued by /auth/login and /auth/token
    jwt_secret: str | None = None
    jwt_algorithm: str = "HS256"
    jwt_expiry_seconds: int = 3600
    jwt_issuer: str | None = None
    bearer_realm: str = "Users"

    oauth_timeout_seconds: float = 10.0

    google_client_id: str | None = None
    google_client_secret: str | None = None
    google_callback_url: str | None = None

    azure_identity_metadata: str | None = None
    azure_client_id: str | None = None
    azure_client_secret: str | None = None
    azure_redirect_url: str | None = None
    azure_response_mode: str = "query"

    keycloak_host: str | None = None
    keycloak_realm: str | None = None
    keycloak_client_id: str | None = None
    keycloak_client_secret: str | None = None
    keycloak_callback_url: str | None = None

    instagram_client_id: str | None = None
    instagram_client_secret: str | None = None
    instagram_callback_url: str | None = None

    @field_validator("logging_level")
    @classmethod
    def validate_logging_level(cls, v):
        if v is None or str(v).strip() == "":
            return "INFO"
        return str(v).strip().upper()

    @field_validator("jwt_expiry_seconds")
    @classmethod
    def validate_jwt_expiry(cls, v):
        if int(v) < 1:
            raise ValueError("jwt_expiry_seconds must be >= 1")
        if int(v) > MAX_JWT_EXPIRY_SECONDS:
            raise ValueError(f"jwt_expiry_seconds must be <= {MAX_JWT_EXPIRY_SECONDS}")
        return int(v)

    @field_validator("azure_response_mode")
    @classmethod
    def validate_azure_response_mode(cls, v):
        v = str(v).strip().lower()
        if v not in ("query", "form_post"):
            raise ValueError("azure_response_mode must be query or form_post")
        return v

    @field_validator("oauth_timeout_seconds")
    @classmethod
    def validate_oauth_timeout(cls, v):
        if float(v) <= 0:
            raise ValueError("oauth_timeout_seconds must be positive")
        return float(v)

    def model_post_init(self, __context):
        """Log which federated providers are configured."""
        configured = [name.value for name in provider_options(self)]
        if configured:
            logger.info("Federated login providers configured: %s", ", ".join(configured))
        if self.jwt_secret is None:
            logger.warning("jwt_secret not set; bearer token issuing is disabled")

    @field_validator("jwt_secret", "google_client_secret", "azure_client_secret", "keycloak_client_secret", "instagram_client_secret", mode="before")
    @classmethod
    def _prefer_docker_secret(cls, v, info):
        """
        Prefer Docker secrets mounted at /run/secrets/<NAME> over environment variables.
        Tries secret files with the field name upper-cased and as-is.
        """
        secret = None
        try:
            candidates = [info.field_name.upper(), info.field_name]
            for name in candidates:
                path = f"/run/secrets/{name}"
                if os.path.isfile(path):
                    with open(path, "r", encoding="utf-8") as f:
                        data = f.read().strip()
                    if data:
                        secret = data
                        break
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Could not read docker secret for %s: %s", info.field_name, exc)
            secret = None
        if secret:
            logger.debug("Using docker secret for %s", info.field_name)
            return secret
        return v


def provider_options(settings: Settings) -> Dict[StrategyName, Dict[str, Any]]:
    """Options for each federated provider whose settings are complete."""
    timeout = settings.oauth_timeout_seconds
    candidates = {
        StrategyName.GOOGLE_OAUTH2: {
            "client_id": settings.google_client_id,
            "client_secret": settings.google_client_secret,
            "callback_url": settings.google_callback_url,
        },
        StrategyName.AZURE_AD: {
            "identity_metadata": settings.azure_identity_metadata,
            "client_id": settings.azure_client_id,
            "client_secret": settings.azure_client_secret,
            "callback_url": settings.azure_redirect_url,
        },
        StrategyName.KEYCLOAK: {
            "host": settings.keycloak_host,
            "realm": settings.keycloak_realm,
            "client_id": settings.keycloak_client_id,
            "client_secret": settings.keycloak_client_secret,
            "callback_url": settings.keycloak_callback_url,
        },
        StrategyName.INSTAGRAM_OAUTH2: {
            "client_id": settings.instagram_client_id,
            "client_secret": settings.instagram_client_secret,
            "callback_url": settings.instagram_callback_url,
        },
    }
    configured = {}
    for name, options in candidates.items():
        missing = [key for key, value in options.items() if not value]
        if not missing:
            configured[name] = dict(options, timeout=timeout)
            if settings.jwt_secret:
                configured[name]["state_secret"] = settings.jwt_secret
        elif len(missing) < len(options):
            logger.warning("%s partially configured, missing: %s", name.value, missing)
    if StrategyName.AZURE_AD in configured:
        configured[StrategyName.AZURE_AD]["response_mode"] = settings.azure_response_mode
    return configured


def load_settings() -> Settings:
    try:
        settings = Settings()
        return settings
    except ValidationError as e:
        logger.error("Configuration error:")
        for err in e.errors():
            logger.error(" - %s: %s", err.get('loc'), err.get('msg'))
        sys.exit(1)


class LocalISOFormatter(logging.Formatter):
    def __init__(self, fmt=None, datefmt=None, tz_name: str | None = None):
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._tz = None
        self._tz_name = tz_name
        if tz_name:
            try:
                self._tz = ZoneInfo(tz_name)
            except ZoneInfoNotFoundError:
                self._tz = None

    def formatTime(self, record, datefmt=None):
        if self._tz is not None:
            dt = datetime.datetime.fromtimestamp(record.created, tz=self._tz)
        else:
            dt = datetime.datetime.fromtimestamp(record.created).astimezone()
        return dt.isoformat(timespec='milliseconds')


NOISY_LOGGERS = ['httpx', 'httpcore', 'authlib', 'urllib3']


def configure_logging(settings: Settings | None = None):
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        tzname = getattr(settings, 'timezone', None) if settings is not None else None
        formatter = LocalISOFormatter('%(asctime)s %(levelname)s %(name)s %(message)s', tz_name=tzname)
        handler.setFormatter(formatter)
        root.addHandler(handler)
    if settings is not None:
        lvl = str(getattr(settings, 'logging_level', 'INFO')).strip().upper()
        numeric = getattr(logging, lvl, None)
        if not isinstance(numeric, int):
            root.setLevel(logging.INFO)
        else:
            root.setLevel(numeric)
    else:
        root.setLevel(logging.INFO)

    logger.info("Logging configured; root level=%s", logging.getLevelName(root.level))

    # token exchange debugging needs the HTTP client logs
    noisy_level = logging.DEBUG if root.level <= logging.DEBUG else logging.WARNING
    for n in NOISY_LOGGERS:
        logging.getLogger(n).setLevel(noisy_level)

    for logger_name in ['uvicorn', 'uvicorn.error']:
        uvicorn_logger = logging.getLogger(logger_name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True
