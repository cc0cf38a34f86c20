from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


class LoggingConfig(BaseModel):
    level: str = Field("INFO", alias="level")
    file: str = Field("./backend/logs/tramdoc.log", alias="file")
    max_bytes: int = Field(5_000_000, alias="max_bytes")
    backup_count: int = Field(5, alias="backup_count")
    sql_level: str = Field("WARNING", alias="sql_level")
    quiet_paths: list[str] = Field(default=["/health"], alias="quiet_paths")


class DatabaseConfig(BaseModel):
    url: str = Field("sqlite:///./backend/data/tramdoc.db", alias="url")


class SecurityConfig(BaseModel):
    secret_key: str = Field("CHANGE_THIS_TO_A_SECURE_SECRET_KEY", alias="secret_key")
    algorithm: str = Field("HS256", alias="algorithm")
    access_token_expire_minutes: int = Field(60 * 24 * 8, alias="access_token_expire_minutes")
    bcrypt_rounds: int = Field(12, alias="bcrypt_rounds")
    login_rate_limit: str = Field("10/minute", alias="login_rate_limit")
    cors_origins: list[str] = Field(
        default=["http://localhost:5173", "http://127.0.0.1:5173"],
        alias="cors_origins",
    )


class AppConfig(BaseModel):
    logging: LoggingConfig = LoggingConfig()
    database: DatabaseConfig = DatabaseConfig()
    security: SecurityConfig = SecurityConfig()


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("r", encoding="utf-8") as file:
        data = yaml.safe_load(file) or {}
    return data


@lru_cache
def get_config() -> AppConfig:
    candidates = [
        Path(os.getenv("APP_CONFIG_PATH", "")),
        Path("config/config.yaml"),
        Path("backend/config/config.yaml"),
    ]

    config_path = None
    for path in candidates:
        if path and path.exists() and path.is_file():
            config_path = path
            break

    if not config_path:
        if Path("config/config.example.yaml").exists():
            config_path = Path("config/config.example.yaml")
        elif Path("backend/config/config.example.yaml").exists():
            config_path = Path("backend/config/config.example.yaml")
        else:
            raise FileNotFoundError("Config file not found in config/config.yaml or backend/config/config.yaml")

    raw = _load_yaml(config_path)
    return AppConfig(**raw)
