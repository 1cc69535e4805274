# eventops/models/types.py
import json
import logging

from sqlalchemy import Text
from sqlalchemy.types import TypeDecorator

log = logging.getLogger("eventops.models")


def decode_json_list(raw):
    """
    Decode a JSON-encoded list stored as text.

    Anything that is not a JSON array (NULL, garbage, an object...) becomes an
    empty list and is logged, never raised.
    """
    if raw is None or raw == "":
        return []
    if isinstance(raw, list):
        return raw
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        log.warning("Undecodable JSON list column value: %r", raw)
        return []
    if not isinstance(value, list):
        log.warning("JSON list column holds a %s, not a list", type(value).__name__)
        return []
    return value


class JSONEncodedList(TypeDecorator):
    """Text column holding a JSON array."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            value = []
        return json.dumps(list(value))

    def process_result_value(self, value, dialect):
        return decode_json_list(value)
