"""Shared utilities: identifier generation."""

from sharebox.shared.utils.generators import generate_cuid, is_valid_entry_id

__all__ = [
    "generate_cuid",
    "is_valid_entry_id",
]
