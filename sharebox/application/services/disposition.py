"""Content-Disposition policy: inline for whitelisted content types, attachment otherwise."""

from collections.abc import Iterable
from enum import Enum
from urllib.parse import quote


class Disposition(str, Enum):
    """How the browser should present a served file."""

    INLINE = "inline"
    ATTACHMENT = "attachment"


def decide_disposition(content_type: str, whitelist: Iterable[str]) -> Disposition:
    """Return INLINE if content_type matches a whitelist entry (case-insensitive)."""
    wanted = content_type.strip().casefold()
    for allowed in whitelist:
        if allowed.strip().casefold() == wanted:
            return Disposition.INLINE
    return Disposition.ATTACHMENT


def _is_plain_filename(filename: str) -> bool:
    if '"' in filename or "\\" in filename:
        return False
    try:
        filename.encode("latin-1")
    except UnicodeEncodeError:
        return False
    return all(ch >= " " and ch != "\x7f" for ch in filename)


def build_content_disposition(disposition: Disposition, filename: str) -> str:
    """Return the Content-Disposition header value.

    Plain filenames give '<kind>; filename="<name>"'. Names that cannot sit in
    a quoted Latin-1 header value get an ASCII fallback plus filename*
    (RFC 6266 / RFC 5987).
    """
    if _is_plain_filename(filename):
        return f'{disposition.value}; filename="{filename}"'
    fallback = "".join(
        ch if " " <= ch < "\x7f" and ch not in '"\\' else "_" for ch in filename
    )
    encoded = quote(filename, safe="")
    return f"{disposition.value}; filename=\"{fallback}\"; filename*=UTF-8''{encoded}"
