"""Shared utilities for the backend."""
from utils.case import (
    as_utc,
    decode_json_field,
    dict_keys_to_camel,
    isoformat,
    to_camel_key,
)

__all__ = [
    "to_camel_key",
    "dict_keys_to_camel",
    "decode_json_field",
    "as_utc",
    "isoformat",
]
