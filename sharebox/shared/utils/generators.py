"""Entry identifier generation and validation (CUID2)."""

import re

from cuid2 import cuid_wrapper

cuid_generator = cuid_wrapper()

# CUID2 output: lowercase letter followed by lowercase alphanumerics.
ENTRY_ID_PATTERN = re.compile(r"^[a-z][a-z0-9]{1,63}$")


def generate_cuid() -> str:
    """Generate a collision-resistant unique identifier (CUID2).

    Used as the storage entry id, so it must be URL- and filename-safe.

    Returns:
        A new CUID string.
    """
    result = cuid_generator()
    if not isinstance(result, str):
        raise TypeError(
            f"Expected str from cuid_generator, got {type(result).__name__}"
        )
    return result


def is_valid_entry_id(value: str) -> bool:
    """Return True if value has the shape of an id produced by generate_cuid()."""
    return bool(ENTRY_ID_PATTERN.match(value))
