"""Application configuration.

``AppConfig`` is a frozen pydantic model. Override what you need::

    config = AppConfig(name="blog", debug=True, templates_dir="templates")

or pull values from the environment with :meth:`AppConfig.from_env`.
"""

import os

from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


class AppConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = "mercury"
    # Adds request/response dumps and tracebacks to error pages. Keep off in production.
    debug: bool = False

    prefix: str | None = None
    suffix: str | None = None
    real_path: str | None = None
    templates_dir: str | None = None

    # Status used when no route serves a request.
    not_found_status: int = Field(default=500, ge=400, le=599)

    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=0, le=65535)

    @classmethod
    def from_env(cls, prefix: str = "MERCURY_", **overrides: Any) -> "AppConfig":
        values: dict[str, Any] = {}
        for name in cls.model_fields:
            raw = os.environ.get(prefix + name.upper())
            if raw is not None:
                values[name] = raw
        values.update(overrides)
        return cls.model_validate(values)
