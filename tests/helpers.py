from __future__ import annotations

import httplib2
from googleapiclient.errors import HttpError


def make_http_error(status: int, message: str = "boom", reason: str = "backendError") -> HttpError:
    """An HttpError shaped like a YouTube Data API error response."""
    content = (
        '{"error": {"code": %d, "message": "%s", "errors": [{"reason": "%s"}]}}' % (status, message, reason)
    ).encode("utf-8")
    return HttpError(resp=httplib2.Response({"status": status}), content=content)
