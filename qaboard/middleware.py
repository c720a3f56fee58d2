from fastapi import Request
from fastapi.responses import JSONResponse

# Same defaults helmet sends
SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Permitted-Cross-Domain-Policies": "none",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "Origin-Agent-Cluster": "?1",
}


def error_response(status_code: int, code: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": code})


async def security_headers(request: Request, call_next):
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


async def limit_body_size(request: Request, call_next):
    """Reject bodies whose declared Content-Length exceeds MAX_BODY_BYTES."""
    content_length = request.headers.get("content-length")
    if content_length:
        try:
            too_large = int(content_length) > request.app.state.settings.max_body_bytes
        except ValueError:
            return error_response(400, "invalid_body")
        if too_large:
            return error_response(413, "payload_too_large")
    return await call_next(request)
