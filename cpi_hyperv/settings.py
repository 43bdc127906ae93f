"""
Provider settings loaded from environment variables (prefix CPI_HYPERV_) or a .env file.
Defaults for create_worker are read once when the action catalog is built.
"""
import os
from typing import Literal, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ProviderSettings(BaseSettings):
    """Settings for the Hyper-V provider."""

    model_config = SettingsConfigDict(
        env_prefix="CPI_HYPERV_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # PowerShell
    executable: Optional[str] = Field(None, description="PowerShell binary; platform default when unset")
    timeout_seconds: float = Field(300.0, ge=0, description="Max wait per script run; 0 disables")
    warmup: bool = Field(True, description="Warm up PowerShell once per process")

    # Pre-check: how a failed existence lookup is treated before create_worker
    precheck_failure: Literal["absent", "fail"] = "absent"

    # create_worker defaults
    default_memory_mb: int = Field(2048, ge=1)
    default_cpu_count: int = Field(2, ge=1)
    default_generation: int = Field(2, ge=1, le=2)
    default_switch_name: str = "Default Switch"

    # Guest credentials handed to the host via default_settings()
    username: str = "Administrator"
    password: SecretStr = SecretStr("password")

    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        if v.upper() not in LOG_LEVELS:
            raise ValueError(f"log level must be one of: {', '.join(LOG_LEVELS)}")
        return v.upper()

    def resolved_executable(self) -> str:
        if self.executable:
            return self.executable
        return "powershell.exe" if os.name == "nt" else "pwsh"

    def default_settings(self) -> dict:
        return {
            "memory_mb": self.default_memory_mb,
            "cpu_count": self.default_cpu_count,
            "switch_name": self.default_switch_name,
            "generation": self.default_generation,
            "username": self.username,
            "password": self.password.get_secret_value(),
        }
