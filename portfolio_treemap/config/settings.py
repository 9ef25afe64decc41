import os
from functools import lru_cache

from pydantic import BaseModel, field_validator

DEFAULT_QUOTE_PROXY_URL = (
    "https://script.google.com/macros/s/"
    "AKfycbx6iFGnB5EaSVedN5mk8F1L0iO9orwZZiOz_2m6wIRzHA1XsU555ib0Ex2LMCR1nLOvhw/exec"
)


class Settings(BaseModel):
    TREEMAP_BASE_PATH: str = "/portfolio-treemap/"
    TREEMAP_STATE_PARAM: str = "p"
    TREEMAP_MAX_CONCURRENT_REQUESTS: int = 5
    TREEMAP_QUOTE_PROXY_URL: str = DEFAULT_QUOTE_PROXY_URL
    TREEMAP_QUOTE_PAGE_URL: str = "https://finance.yahoo.co.jp/quote/{symbol}"
    TREEMAP_QUOTE_TIMEOUT_SEC: float = 10.0
    TREEMAP_PUBLIC_ORIGIN: str = "http://localhost:8000"

    @field_validator("TREEMAP_BASE_PATH")
    @classmethod
    def require_slashes(cls, value: str) -> str:
        if not value.startswith("/") or not value.endswith("/"):
            raise ValueError("base path must start and end with '/'")
        return value

    @field_validator("TREEMAP_STATE_PARAM")
    @classmethod
    def require_param_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("state parameter name must not be empty")
        return value

    @field_validator("TREEMAP_MAX_CONCURRENT_REQUESTS")
    @classmethod
    def require_positive_concurrency(cls, value: int) -> int:
        if value < 1:
            raise ValueError("max concurrent requests must be >= 1")
        return value

    @field_validator("TREEMAP_QUOTE_PAGE_URL")
    @classmethod
    def require_symbol_placeholder(cls, value: str) -> str:
        if "{symbol}" not in value:
            raise ValueError("quote page url must contain '{symbol}'")
        return value

    @field_validator("TREEMAP_PUBLIC_ORIGIN")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @classmethod
    def from_env(cls) -> "Settings":
        raw = {
            name: os.getenv(name)
            for name in cls.model_fields
        }
        return cls.model_validate({k: v for k, v in raw.items() if v is not None})


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
