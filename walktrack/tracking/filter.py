"""Acceptance check for raw position readings."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from ..domain.models import PositionSample

logger = logging.getLogger(__name__)


def accept(raw: Any) -> PositionSample | None:
    """
    Validate a raw reading and return it as a PositionSample.

    Accepts a mapping or any object with ``latitude``/``longitude`` (and
    optionally ``captured_at_ms``) attributes. Readings with missing,
    non-finite or out-of-range coordinates are dropped by returning None.
    No speed or jump plausibility filtering is applied.
    """
    if raw is None:
        return None
    if isinstance(raw, PositionSample):
        return raw

    try:
        return PositionSample.model_validate(raw, from_attributes=True)
    except ValidationError as e:
        logger.debug("Dropped position reading: %d validation error(s)", e.error_count())
        return None
