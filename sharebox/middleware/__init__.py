"""HTTP middleware: request size limit, request ID, security headers.

Applied in sharebox.main; order matters (last added = outermost).
"""

from sharebox.middleware.request_id import RequestIDMiddleware
from sharebox.middleware.request_size_limit import RequestSizeLimitMiddleware
from sharebox.middleware.security_headers import SecurityHeadersMiddleware

__all__ = [
    "RequestIDMiddleware",
    "RequestSizeLimitMiddleware",
    "SecurityHeadersMiddleware",
]
