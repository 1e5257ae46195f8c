"""
Configuration for the firmware executor.

Reads from environment variables (prefix FIRMWARE_EXECUTOR_) with sensible defaults.
"""

from typing import Tuple

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Executor settings loaded from environment."""

    model_config = SettingsConfigDict(env_prefix="FIRMWARE_EXECUTOR_")

    # Redfish entry point
    service_root: str = "/redfish/v1/"

    # Device credentials (used only when no session token is supplied)
    default_user: str = "root"
    default_password: str = ""

    # SSL verification (BMCs ship self-signed certificates)
    verify_ssl: bool = False

    # Timeouts (seconds)
    connect_timeout: int = 5
    read_timeout: int = 30
    upload_timeout: int = 300  # 5 min for firmware image upload

    # Re-read inventory after upload to learn the identity of a newly created slot
    confirm_identity_after_upload: bool = False

    # Logging
    log_level: str = "INFO"

    @property
    def request_timeout(self) -> Tuple[int, int]:
        return (self.connect_timeout, self.read_timeout)

    @property
    def push_timeout(self) -> Tuple[int, int]:
        return (self.connect_timeout, self.upload_timeout)


settings = Settings()
