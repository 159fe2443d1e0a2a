"""Runtime settings with env-var overrides."""
from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, field_validator

from gwauth.domain.models import CALLER_CREDENTIALS_ARN
from gwauth.naming.derive import DEFAULT_PREFIX

_ENV_KEYS = {
    "log_level": "GWAUTH_LOG_LEVEL",
    "credentials_arn": "GWAUTH_CREDENTIALS_ARN",
    "resource_prefix": "GWAUTH_RESOURCE_PREFIX",
}


class Settings(BaseModel):
    log_level: str = "WARNING"
    credentials_arn: str = CALLER_CREDENTIALS_ARN
    resource_prefix: str = DEFAULT_PREFIX

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.strip().upper() or "WARNING"


def load_settings(**overrides: Any) -> Settings:
    """Env vars first, then explicit (non-None) overrides on top."""
    values: dict[str, Any] = {}
    for field, env_key in _ENV_KEYS.items():
        env_val = os.getenv(env_key, "")
        if env_val:
            values[field] = env_val

    values.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**values)
