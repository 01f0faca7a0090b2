"""Settings for connecting to Content Server."""

from typing import Literal

from pydantic import Field, HttpUrl, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class OTCSSettings(BaseSettings):
    """Connection settings for OpenText Content Server (read from OTCS_* environment variables)."""

    model_config = SettingsConfigDict(env_prefix="OTCS_", env_file=".env", extra="ignore")

    url: HttpUrl = Field(default=HttpUrl("http://otcs-admin-0:8080"), description="URL of the OTCS service")
    base_path: str = Field(default="/cs/cs", description="Base path of the OTCS installation")
    username: str = Field(default="admin", description="Username for the OTCS user")
    password: SecretStr | None = Field(default=None, description="Password for the OTCS user")
    ticket: str | None = Field(
        default=None,
        description="Existing OTCS ticket. If set, no authentication with username and password is done.",
    )
    timeout: float = Field(default=60.0, description="Timeout for REST API calls in seconds")
    thread_number: int = Field(default=3, description="Number of threads for parallel form requests")
    loglevel: Literal["INFO", "DEBUG", "WARNING", "ERROR"] = "INFO"
