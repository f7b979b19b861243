from __future__ import annotations

from overload.config.models import RunConfig, SetupError

__all__ = ["RunConfig", "SetupError"]
