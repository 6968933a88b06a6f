"""Parse the /v1/stations response body into client records."""

import logging
from dataclasses import dataclass

from pydantic import ValidationError

from slemon.sle.models import ClientRecord

logger = logging.getLogger(__name__)

# Wrapper fields tried, in order, when the body is an object
WRAPPER_FIELDS = ("stations", "clients", "data")


@dataclass
class ParseError:
    """Why a stations payload could not be turned into client records."""

    reason: str


def _extract_list(payload: object) -> list[object] | None:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for field in WRAPPER_FIELDS:
            value = payload.get(field)
            if isinstance(value, list):
                return value
    return None


def parse_stations(payload: object) -> list[ClientRecord] | ParseError:
    """Accept a bare array or an object wrapping one under a known field.

    Individual entries that are not valid client objects are dropped. An
    empty list is a valid result.
    """
    items = _extract_list(payload)
    if items is None:
        return ParseError(f"unexpected payload shape: {type(payload).__name__}")

    records: list[ClientRecord] = []
    rejected = 0
    for item in items:
        if not isinstance(item, dict):
            rejected += 1
            continue
        try:
            records.append(ClientRecord.model_validate(item))
        except ValidationError:
            rejected += 1

    if rejected:
        logger.warning("Dropped %d malformed client record(s)", rejected)
        if not records:
            return ParseError(f"all {rejected} client records were malformed")
    return records
