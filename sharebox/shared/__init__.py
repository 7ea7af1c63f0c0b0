"""Shared utilities: request context, telemetry, and identifier helpers.

Used by application and infrastructure. No business logic.
"""

from sharebox.shared.context import get_request_id, reset_request_id, set_request_id
from sharebox.shared.utils import generate_cuid, is_valid_entry_id

__all__ = [
    "generate_cuid",
    "get_request_id",
    "is_valid_entry_id",
    "reset_request_id",
    "set_request_id",
]
