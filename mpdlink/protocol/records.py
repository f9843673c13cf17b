"""
Record decoding for MPD replies.

A reply body (everything before the ``OK`` terminator) is a sequence of
``Key: Value`` lines. This module turns that text into records: ordered
mappings from the lower-cased key to the raw string value.

List replies (playlistinfo, search, listallinfo, ...) carry no explicit
separator between entries. Entry boundaries are inferred from the
recurrence of a boundary key, ``file`` by default, which every entry-style
record contains exactly once.

Lines that do not match the ``Key: Value`` shape are skipped. They are
logged and reported to an optional callback, but never raised.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Collection
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Key up to the first ": " (the key may itself contain ":"), value is the rest
# of the line (may be empty).
_LINE_RE = re.compile(r"^(.+?): (.*)$")

# A decoded record: lower-cased field name -> raw value.
Record = dict[str, str]

DEFAULT_BOUNDARY_KEYS: frozenset[str] = frozenset({"file"})


@dataclass(frozen=True, slots=True)
class ParseAnomaly:
    """A reply line that did not have the ``Key: Value`` shape."""

    line_number: int
    line: str


AnomalyCallback = Callable[[ParseAnomaly], None]


def _iter_fields(
    text: str,
    on_anomaly: AnomalyCallback | None,
):
    """Yield ``(key, value)`` pairs, skipping anomalous lines."""
    # Only "\n" ends a line; tag values may contain other Unicode line breaks.
    for line_number, line in enumerate(text.split("\n"), start=1):
        if not line.strip():
            continue

        match = _LINE_RE.match(line)
        if match is None:
            logger.debug("Skipping malformed reply line %d: %r", line_number, line)
            if on_anomaly is not None:
                on_anomaly(ParseAnomaly(line_number=line_number, line=line))
            continue

        key, value = match.groups()
        yield key.lower(), value


def decode_one(text: str, *, on_anomaly: AnomalyCallback | None = None) -> Record:
    """
    Decode a reply into a single record.

    Later duplicate keys overwrite earlier ones. Empty input yields an
    empty record.

    Args:
        text: Raw reply body.
        on_anomaly: Optional callback for lines that could not be decoded.

    Returns:
        The decoded record.
    """
    record: Record = {}
    for key, value in _iter_fields(text, on_anomaly):
        record[key] = value
    return record


def decode_many(
    text: str,
    *,
    boundary_keys: Collection[str] = DEFAULT_BOUNDARY_KEYS,
    on_anomaly: AnomalyCallback | None = None,
) -> list[Record]:
    """
    Decode a reply into an ordered list of records.

    A new record is started whenever a boundary key is seen while the
    current record already holds at least one field. A block in which no
    boundary key recurs yields a single record.

    Args:
        text: Raw reply body.
        boundary_keys: Lower-cased keys that open a new record.
        on_anomaly: Optional callback for lines that could not be decoded.

    Returns:
        Records in reply order. Empty input yields an empty list.
    """
    records: list[Record] = []
    current: Record = {}

    for key, value in _iter_fields(text, on_anomaly):
        if key in boundary_keys and current:
            records.append(current)
            current = {}
        current[key] = value

    if current:
        records.append(current)

    return records
