"""Projection of upstream status documents onto the wire fields."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from statusrelay.domain.models import StatusProjection

logger = logging.getLogger(__name__)


def extract_status(document: Any) -> StatusProjection | None:
    """Validate ``document`` and project it into a ``StatusProjection``.

    The document must be a JSON object carrying integer ``players``,
    ``soft_max_players`` and ``run_level`` and string ``name`` and
    ``round_start_time``. Extra keys are ignored. Returns None when any
    field is missing or has the wrong JSON type.
    """
    if not isinstance(document, dict):
        logger.debug("Status document is %s, not an object", type(document).__name__)
        return None
    try:
        return StatusProjection.model_validate(document)
    except ValidationError as e:
        logger.debug("Status document rejected: %d field error(s)", e.error_count())
        return None
