from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
import html

# Headers attached to every response
SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "X-XSS-Protection": "1; mode=block",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "Content-Security-Policy": "default-src 'self'; img-src 'self' data:; object-src 'none'; frame-ancestors 'none';",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}

# --- Security Headers Middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

# --- Input Sanitization ---
def sanitize_input(text):
    """
    Sanitize free text coming from profile and review forms:
    - Strip whitespace
    - HTML escape, so names and bios render inert in listing pages
    Non-string values are passed through untouched.
    """
    if not isinstance(text, str):
        return text
    return html.escape(text.strip())
