"""
config.py — Application settings

Loaded from environment variables (and a `.env` file, if present) with
pydantic-settings. Credentials are kept per environment so that switching
`SQUARE_ENVIRONMENT` between sandbox and production needs no other change:

    SQUARE_ENVIRONMENT=sandbox
    SQUARE_SANDBOX_ACCESS_TOKEN=...
    SQUARE_SANDBOX_APPLICATION_ID=...
"""

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ErrorKind, ServiceError


class Settings(BaseSettings):
    """Process-wide configuration. Built once by the application factory."""

    # Remote commerce platform
    square_environment: Literal["sandbox", "production"] = "sandbox"
    square_sandbox_access_token: Optional[str] = None
    square_sandbox_application_id: Optional[str] = None
    square_production_access_token: Optional[str] = None
    square_production_application_id: Optional[str] = None
    square_api_version: str = "2021-05-13"
    request_timeout: float = 10.0

    # HTTP surface
    cors_origin: str = "http://localhost:3000"
    well_known_dir: str = ".well-known"

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # Invoice policy: due on the weekly fulfillment day (Monday = 0)
    invoice_due_weekday: int = Field(4, ge=0, le=6)
    invoice_reminder_days: int = Field(1, ge=1)
    invoice_reminder_message: str = "Your invoice is due tomorrow."

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @property
    def access_token(self) -> Optional[str]:
        return getattr(self, f"square_{self.square_environment}_access_token")

    @property
    def application_id(self) -> Optional[str]:
        return getattr(self, f"square_{self.square_environment}_application_id")

    def require_access_token(self) -> str:
        """Return the access token for the selected environment or fail.

        Raises:
            ServiceError: (CONFIGURATION) if no token is configured.
        """
        token = self.access_token
        if not token:
            env_var = f"SQUARE_{self.square_environment.upper()}_ACCESS_TOKEN"
            raise ServiceError(
                ErrorKind.CONFIGURATION,
                f"Missing access token: set {env_var}.",
            )
        return token
