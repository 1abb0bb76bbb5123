"""
Configuration module for environment variable validation and type-safe config.

This module validates environment variables when the configuration is first
requested and provides a type-safe configuration object shared by the
middleware pipeline, the error mapper and the service wrappers.
"""
import os
from dataclasses import dataclass
from typing import Optional


PRODUCTION_STAGES = {"prod", "production"}


@dataclass
class Config:
    """Type-safe configuration object with validated environment variables."""

    service_name: str = "lambda-service"
    stage: str = "dev"
    aws_region: str = "eu-west-1"
    log_level: str = "INFO"
    rate_limit_max_requests: int = 100
    rate_limit_window_seconds: float = 60.0
    s3_bucket: Optional[str] = None
    whatsapp_api_endpoint: str = "https://graph.facebook.com/v17.0"
    ticket_tailor_api_domain: str = "https://api.tickettailor.com"

    @property
    def is_production(self) -> bool:
        """True when stack traces and debug details must stay out of responses."""
        return self.stage in PRODUCTION_STAGES

    @classmethod
    def from_env(cls) -> "Config":
        """
        Create Config instance from environment variables.

        Raises:
            ValueError: If environment variables are invalid.
        """
        service_name = os.environ.get("SERVICE_NAME", "lambda-service")
        stage = (
            os.environ.get("STAGE") or os.environ.get("ENVIRONMENT") or "dev"
        ).lower()
        aws_region = (
            os.environ.get("AWS_REGION") or os.environ.get("REGION") or "eu-west-1"
        )
        log_level = os.environ.get("LOG_LEVEL", "INFO").upper()

        # Validate log level
        valid_log_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if log_level not in valid_log_levels:
            raise ValueError(
                f"LOG_LEVEL must be one of {valid_log_levels}, got: {log_level}"
            )

        max_requests_raw = os.environ.get("RATE_LIMIT_MAX_REQUESTS", "100")
        try:
            rate_limit_max_requests = int(max_requests_raw)
        except ValueError:
            raise ValueError(
                f"RATE_LIMIT_MAX_REQUESTS must be an integer, got: {max_requests_raw}"
            )
        if rate_limit_max_requests <= 0:
            raise ValueError(
                f"RATE_LIMIT_MAX_REQUESTS must be positive, got: {rate_limit_max_requests}"
            )

        window_raw = os.environ.get("RATE_LIMIT_WINDOW_SECONDS", "60")
        try:
            rate_limit_window_seconds = float(window_raw)
        except ValueError:
            raise ValueError(
                f"RATE_LIMIT_WINDOW_SECONDS must be a number, got: {window_raw}"
            )
        if rate_limit_window_seconds <= 0:
            raise ValueError(
                f"RATE_LIMIT_WINDOW_SECONDS must be positive, got: {rate_limit_window_seconds}"
            )

        return cls(
            service_name=service_name,
            stage=stage,
            aws_region=aws_region,
            log_level=log_level,
            rate_limit_max_requests=rate_limit_max_requests,
            rate_limit_window_seconds=rate_limit_window_seconds,
            s3_bucket=os.environ.get("S3_BUCKET"),
            whatsapp_api_endpoint=os.environ.get(
                "WHATSAPP_API_ENDPOINT", "https://graph.facebook.com/v17.0"
            ),
            ticket_tailor_api_domain=os.environ.get(
                "TICKET_TAILOR_API_DOMAIN", "https://api.tickettailor.com"
            ),
        )


# Global config instance - initialized on first use
# This will raise ValueError if env vars are invalid
_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get the global configuration instance.

    Returns:
        Config: The validated configuration object

    Raises:
        ValueError: If environment variables are invalid.
    """
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config
