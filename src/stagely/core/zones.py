"""Pure parsing of ``aws ec2 describe-availability-zones`` output.

A failed or unparsable query degrades to an empty zone list rather than
an error; the zone prompt then simply has nothing to offer.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from stagely.core.models import ProcessResult

logger = logging.getLogger(__name__)


def parse_available_zones(payload: str) -> list[str]:
    """Return the names of zones whose ``State`` is ``available``.

    Raises
    ------
    ValueError
        If *payload* is not the JSON document the aws CLI emits.
    """
    document: Any = json.loads(payload)
    if not isinstance(document, dict):
        raise ValueError("availability-zone response is not a JSON object")
    entries = document.get("AvailabilityZones")
    if not isinstance(entries, list):
        raise ValueError("availability-zone response has no AvailabilityZones list")
    return [
        str(entry["ZoneName"])
        for entry in entries
        if isinstance(entry, dict)
        and entry.get("State") == "available"
        and entry.get("ZoneName")
    ]


def zones_from_result(result: ProcessResult) -> list[str]:
    """Available zones from a query result, or ``[]`` on any error."""
    if result.reported_error:
        logger.warning(
            "Availability-zone query failed (exit %d): %s",
            result.returncode,
            result.stderr.strip() or "no error output",
        )
        return []
    try:
        return parse_available_zones(result.stdout)
    except ValueError as exc:
        # json.JSONDecodeError is a ValueError subclass.
        logger.warning("Could not parse availability-zone response: %s", exc)
        return []
