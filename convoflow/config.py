from __future__ import annotations

import os
from typing import Optional

import yaml
from pydantic import BaseModel, Field

DEFAULT_FALLBACK_MESSAGE = (
    "Une erreur est survenue lors du traitement de votre demande."
)


class EngineSettings(BaseModel):
    """Behaviour switches for the workflow engine."""

    max_auto_advance: int = Field(default=5, ge=0)
    allow_rollback: bool = True
    save_history: bool = True
    fallback_message: str = DEFAULT_FALLBACK_MESSAGE


class ConvoflowConfig(BaseModel):
    """Top-level configuration model."""

    engine: EngineSettings = EngineSettings()
    database_url: Optional[str] = None
    log_level: str = "INFO"


def load_config(path: Optional[str] = None) -> ConvoflowConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to CONVOFLOW_CONFIG env
            variable or 'config.yaml' in the current directory.
    """

    config_path = path or os.getenv("CONVOFLOW_CONFIG", "config.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = ConvoflowConfig(**data)
    else:
        config = ConvoflowConfig()

    env_db_url = os.getenv("CONVOFLOW_DATABASE_URL") or os.getenv("DATABASE_URL")
    if env_db_url:
        config.database_url = env_db_url
    env_level = os.getenv("CONVOFLOW_LOG_LEVEL")
    if env_level:
        config.log_level = env_level
    return config
