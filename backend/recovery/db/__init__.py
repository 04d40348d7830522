"""Database utilities and models."""

from recovery.db.base import Base
from recovery.db import models  # noqa: F401  (imported for side effects)

__all__ = ["Base"]
