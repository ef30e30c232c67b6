from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "ERP Roles"
    app_env: str = "local"
    metrics_enabled: bool = False
    roles_audit_denials: bool = True
    roles_audit_grants: bool = False
    roles_accept_legacy_aliases: bool = False

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)


@lru_cache
def get_settings() -> Settings:
    return Settings()
