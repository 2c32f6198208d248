"""Application configuration using Pydantic settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Service principal used for Graph, ARM and storage calls
    tenant_id: str = Field(
        ..., alias="AZURE_TENANT_ID",
        description="Entra ID tenant ID the service principal belongs to.",
    )
    client_id: str = Field(
        ..., alias="AZURE_CLIENT_ID",
        description="Application (client) ID of the service principal.",
    )
    client_secret: str = Field(
        ..., alias="AZURE_CLIENT_SECRET",
        description="Client secret of the service principal.",
    )
    authority_host: str = Field(
        "https://login.microsoftonline.com", alias="AZURE_AUTHORITY_HOST",
        description="Entra ID authority host. Override for sovereign clouds.",
    )

    # Endpoints
    graph_api_base: str = Field(
        "https://graph.microsoft.com/v1.0", alias="GRAPH_API_BASE",
        description="Microsoft Graph base URL used for identity lookups.",
    )
    arm_api_base: str = Field(
        "https://management.azure.com", alias="ARM_API_BASE",
        description="Azure Resource Manager base URL used to resolve subscriptions and storage accounts.",
    )
    http_timeout: float = Field(
        30.0, alias="HTTP_TIMEOUT",
        description="HTTP request timeout in seconds for Graph and ARM calls.",
    )

    # Recursive ACL propagation
    acl_batch_size: int = Field(
        2000, alias="ACL_BATCH_SIZE",
        description="Number of paths changed per batch by recursive ACL operations.",
    )
    acl_max_batches: int = Field(
        0, alias="ACL_MAX_BATCHES",
        description="Max batches per recursive ACL operation. 0 = run until the whole subtree is processed.",
    )
    acl_continue_on_failure: bool = Field(
        False, alias="ACL_CONTINUE_ON_FAILURE",
        description="Keep propagating past per-path failures. Failures are still reported as a partial failure.",
    )

    # Logging
    log_level: str = Field(
        "INFO", alias="LOG_LEVEL",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, or CRITICAL.",
    )
    log_file: str = Field(
        "", alias="LOG_FILE",
        description="Path to log file for file-based logging with rotation. Empty = console only.",
    )
    log_file_max_bytes: int = Field(
        10_485_760, alias="LOG_FILE_MAX_BYTES",
        description="Max size in bytes per log file before rotation. Default: 10 MB.",
    )
    log_file_backup_count: int = Field(
        5, alias="LOG_FILE_BACKUP_COUNT",
        description="Number of rotated backup log files to keep.",
    )

    @property
    def authority(self) -> str:
        return f"{self.authority_host.rstrip('/')}/{self.tenant_id}"


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()
