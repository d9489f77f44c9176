"""Response format negotiation for pages served as JSON or HTML."""

from __future__ import annotations

from fastapi import Request

FORMAT_HTML = "html"
FORMAT_JSON = "json"


def wants_html(request: Request, fmt: str | None) -> bool:
    """Return True when the caller asked for HTML.

    An explicit ``format`` query value wins; otherwise the ``Accept`` header
    decides, and JSON is the default.
    """
    if fmt:
        return fmt.lower() == FORMAT_HTML
    accept = request.headers.get("accept", "")
    best: tuple[float, str] | None = None
    for part in accept.split(","):
        media_type, _, params = part.strip().partition(";")
        quality = 1.0
        for param in params.split(";"):
            name, _, value = param.strip().partition("=")
            if name == "q":
                try:
                    quality = float(value)
                except ValueError:
                    quality = 0.0
        media_type = media_type.strip().lower()
        if media_type in ("text/html", "application/json"):
            if best is None or quality > best[0]:
                best = (quality, media_type)
    return best is not None and best[1] == "text/html" and best[0] > 0
