"""Overlay realtime integration credentials from environment variables."""

from __future__ import annotations

import logging
import os
from typing import List, Mapping, Optional, Tuple

from .venue_config import DeputyAccess, SquareAccess, VenueConfig, sanitize_origin

logger = logging.getLogger(__name__)

SQUARE_TOKEN_VARS = ("SQUARE_ACCESS_TOKEN", "BAROPS_SQUARE_ACCESS_TOKEN")
SQUARE_LOCATION_VAR = "SQUARE_LOCATION_ID"
SQUARE_ENVIRONMENT_VAR = "SQUARE_ENVIRONMENT"
DEPUTY_TOKEN_VAR = "DEPUTY_ACCESS_TOKEN"
DEPUTY_BASE_URL_VAR = "DEPUTY_BASE_URL"


def _read(environ: Mapping[str, str], *names: str) -> str:
    for name in names:
        value = environ.get(name, "")
        if value and value.strip():
            return value.strip()
    return ""


def with_realtime_env(
    config: VenueConfig,
    environ: Optional[Mapping[str, str]] = None,
) -> Tuple[VenueConfig, List[str]]:
    """Fill blank Square/Deputy settings from ``environ`` (defaults to ``os.environ``).

    Values already present in the config win. Returns the updated config and
    the environment variable names that are still unresolved.
    """
    env = os.environ if environ is None else environ

    square_token = config.square.access_token or _read(env, *SQUARE_TOKEN_VARS)
    location_id = config.square.location_id or _read(env, SQUARE_LOCATION_VAR)
    environment = _read(env, SQUARE_ENVIRONMENT_VAR) or config.square.environment
    deputy_token = config.deputy.access_token or _read(env, DEPUTY_TOKEN_VAR)
    deputy_url = config.deputy.base_url or sanitize_origin(_read(env, DEPUTY_BASE_URL_VAR))

    updated = config.with_integrations(
        square=SquareAccess(
            environment="sandbox" if environment == "sandbox" else "production",
            access_token=square_token,
            location_id=location_id,
        ),
        deputy=DeputyAccess(access_token=deputy_token, base_url=deputy_url),
    )

    missing = []
    if not square_token:
        missing.append(SQUARE_TOKEN_VARS[0])
    if not location_id:
        missing.append(SQUARE_LOCATION_VAR)
    if not deputy_token:
        missing.append(DEPUTY_TOKEN_VAR)
    if not deputy_url:
        missing.append(DEPUTY_BASE_URL_VAR)
    if missing:
        logger.debug("Realtime settings still missing: %s", ", ".join(missing))
    return updated, missing


__all__ = ["with_realtime_env"]
