# /enconf/core/config.py
from functools import lru_cache
from typing import Literal, get_args
from pydantic import field_validator
from pydantic_settings import BaseSettings

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LOG_LEVELS = get_args(LogLevel)


# Operational settings of the tool itself. Node configuration (EN_*, DATABASE_*)
# is never read here; see enconf.env.mapper.load_from_env.
class Settings(BaseSettings):
    LOG_LEVEL: LogLevel = "INFO"
    DEFAULT_NETWORK: str = "mainnet"
    VOLUMES_ROOT: str = "volumes"

    class Config:
        env_prefix = "ENCONF_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def upper_level(cls, value):
        return value.upper() if isinstance(value, str) else value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
