from __future__ import annotations

import os
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, Field


class HttpConfig(BaseModel):
    """Configuration for the HTTP action client."""

    timeout: float = 30.0


class CodeConfig(BaseModel):
    """Commands used to run code snippets."""

    node: List[str] = Field(default_factory=lambda: ["node"])
    tsx: List[str] = Field(default_factory=lambda: ["tsx"])
    timeout: float = 30.0


class AlertingConfig(BaseModel):
    """Where failure alerts are delivered."""

    backend: Literal["log", "webhook"] = "log"
    webhook_url: Optional[str] = None


class FlowrunConfig(BaseModel):
    """Top-level configuration model."""

    database_url: Optional[str] = None
    log_level: str = "INFO"
    http: HttpConfig = HttpConfig()
    code: CodeConfig = CodeConfig()
    alerting: AlertingConfig = AlertingConfig()


def load_config(path: Optional[str] = None) -> FlowrunConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to FLOWRUN_CONFIG env
            variable or 'config.yaml' in the current directory.
    """

    config_path = path or os.getenv("FLOWRUN_CONFIG", "config.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = FlowrunConfig(**data)
    else:
        config = FlowrunConfig()

    env_db_url = os.getenv("FLOWRUN_DATABASE_URL") or os.getenv("DATABASE_URL")
    if env_db_url:
        config.database_url = env_db_url
    return config
