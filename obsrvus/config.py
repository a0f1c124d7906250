"""Client configuration from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


@dataclass
class ObsrvusConfig:
    application_key: str
    system_key: str
    use_background: bool = True
    raise_on_failure: bool = False

    @classmethod
    def from_env(cls) -> ObsrvusConfig:
        application_key = os.environ.get("OBSRVUS_APPLICATION_KEY", "").strip()
        system_key = os.environ.get("OBSRVUS_SYSTEM_KEY", "").strip()

        missing = []
        if not application_key:
            missing.append("OBSRVUS_APPLICATION_KEY")
        if not system_key:
            missing.append("OBSRVUS_SYSTEM_KEY")
        if missing:
            raise ValueError(f"Missing required env vars: {', '.join(missing)}")

        return cls(
            application_key=application_key,
            system_key=system_key,
            use_background=_env_bool("OBSRVUS_USE_BACKGROUND", True),
            raise_on_failure=_env_bool("OBSRVUS_RAISE_ON_FAILURE", False),
        )
