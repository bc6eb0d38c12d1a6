"""Base model helpers shared by all domain models."""

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict


def generate_id(prefix: str) -> str:
    """Generate a unique ID with a given prefix."""
    return f"{prefix}_{uuid4().hex[:12]}"


def utc_now() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(timezone.utc)


class FrozenModel(BaseModel):
    """Base class for immutable value objects.

    Updates go through ``model_copy(update=...)`` which returns a new
    instance and leaves the original untouched.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )

    def summary(self) -> dict[str, Any]:
        """Return a summary dict for logging."""
        return {"type": self.__class__.__name__}
