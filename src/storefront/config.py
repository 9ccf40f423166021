"""Application settings for the storefront service.

Protean keeps its own provider configuration. Everything the access rules
and transport need is loaded here once per process.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(raw: str, lowercase: bool = False) -> frozenset[str]:
    values = (value.strip() for value in raw.split(","))
    return frozenset(value.lower() if lowercase else value for value in values if value)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)

    SERVICE_NAME: str = "storefront"

    # Comma separated allow-list; ADMIN_EMAIL is accepted for single-admin setups
    ADMIN_EMAILS: str = ""
    ADMIN_EMAIL: str = ""
    API_KEYS: str = ""
    API_KEY: str = ""

    JWT_SECRET: str = "CHANGE_ME_IN_PRODUCTION"
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: str | None = None

    # Cancelling a fulfilled order is permitted so refunds can be recorded after the fact
    ALLOW_CANCEL_FULFILLED: bool = True

    @property
    def admin_emails(self) -> frozenset[str]:
        return _split_csv(self.ADMIN_EMAILS or self.ADMIN_EMAIL, lowercase=True)

    @property
    def api_keys(self) -> frozenset[str]:
        return _split_csv(self.API_KEYS or self.API_KEY)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
