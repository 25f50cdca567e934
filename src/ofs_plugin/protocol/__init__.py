"""Protocol definitions for the Field Service plugin message channel."""

from __future__ import annotations

from .call_ids import *  # noqa: F401,F403
from .messages import *  # noqa: F401,F403
from .parser import EnvelopeParser

__all__ = [name for name in globals().keys() if not name.startswith("_")]
