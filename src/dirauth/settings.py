"""Environment configuration using Pydantic BaseSettings."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

from dirauth.config import DirectoryConfig


class Settings(BaseSettings):
    """Service settings loaded from ``LDAP_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="LDAP_",
        env_file=".env",
        extra="ignore",
    )

    # Service account
    service_bind_dn: str = "cn=svc,dc=example,dc=com"
    service_bind_password: str = "change-this"

    # Search
    base_dn: str = "dc=example,dc=com"
    search_filter: str = "(sAMAccountName={0})"

    # Connections
    connect_timeout_millis: int = 3000
    read_timeout_millis: int = 5000
    use_ssl: bool = False

    # Retry policy
    max_retries_per_server: int = 2
    backoff_base_millis: int = 200

    # Discovery cache
    discovery_ttl_seconds: float = 3600.0
    discovery_max_entries: int = 1000

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    def to_directory_config(self) -> DirectoryConfig:
        """Build the immutable core configuration; validation errors raise ConfigurationError."""
        return DirectoryConfig(
            service_bind_dn=self.service_bind_dn,
            service_bind_password=self.service_bind_password,
            base_dn=self.base_dn,
            user_search_filter=self.search_filter,
            connect_timeout_ms=self.connect_timeout_millis,
            read_timeout_ms=self.read_timeout_millis,
            use_ssl=self.use_ssl,
            max_retries_per_server=self.max_retries_per_server,
            backoff_base_ms=self.backoff_base_millis,
            discovery_ttl_seconds=self.discovery_ttl_seconds,
            discovery_max_entries=self.discovery_max_entries,
        )
