# src/jewelbook/core/security.py
"""
SECURITY MIDDLEWARE FOR RATE LIMITING AND SECURITY HEADERS
"""

import time
import threading
from collections import defaultdict
from fastapi import Request
from fastapi.middleware import Middleware
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
import logging
import re

from jewelbook.core import config
from jewelbook.core.logger import security_log

logger = logging.getLogger(__name__)

SQL_PATTERNS = [
    r"(\%27)|(\')|(\-\-)|(\%23)|(#)",
    r"((\%3D)|(=))[^\n]*((\%27)|(\')|(\-\-)|(\%3B)|(;))",
    r"\w*((\%27)|(\'))((\%6F)|o|(\%4F))((\%72)|r|(\%52))",
    r"((\%27)|(\'))union",
]

XSS_PATTERNS = [
    r"<script.*?>.*?</script>",
    r"javascript:",
    r"onerror=",
    r"onload=",
]


class SecurityMiddleware(BaseHTTPMiddleware):
    """
    Adds security headers and logs security events.
    """

    async def dispatch(self, request: Request, call_next):
        client_ip = request.client.host if request.client else "unknown"

        if request.url.path != "/health":
            logger.info(f"Request: {request.method} {request.url.path} from {client_ip}")

        if self.is_suspicious_request(request):
            security_log("suspicious_request", {
                "path": request.url.path,
                "method": request.method,
                "user_agent": request.headers.get("user-agent")
            }, ip_address=client_ip)

        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        if response.status_code >= 400 and response.status_code != 404:
            security_log("request_error", {
                "path": request.url.path,
                "method": request.method,
                "status_code": response.status_code,
                "user": request.headers.get(config.USER_HEADER)
            }, ip_address=client_ip)

        return response

    @staticmethod
    def is_suspicious_request(request: Request) -> bool:
        """Check the URL for SQL injection or XSS patterns."""
        url = str(request.url)
        for pattern in SQL_PATTERNS + XSS_PATTERNS:
            if re.search(pattern, url, re.IGNORECASE):
                return True
        return False


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Sliding window rate limiting per client IP.
    """

    def __init__(self, app, max_requests: int = 100, window_seconds: int = 60):
        super().__init__(app)
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.requests = defaultdict(list)
        self.lock = threading.Lock()

        self.excluded_paths = ["/health"]

    async def dispatch(self, request: Request, call_next):
        if any(request.url.path.startswith(path) for path in self.excluded_paths):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"

        with self.lock:
            now = time.time()
            window_start = now - self.window_seconds

            self.requests[client_ip] = [
                req_time for req_time in self.requests[client_ip]
                if req_time > window_start
            ]

            if len(self.requests[client_ip]) >= self.max_requests:
                logger.warning(f"Rate limit exceeded for IP: {client_ip}")
                return JSONResponse(
                    status_code=429,
                    content={"detail": "Too many requests. Please try again later."}
                )

            self.requests[client_ip].append(now)

        return await call_next(request)


def build_middleware():
    """Middleware stack, outermost first."""
    middleware = []
    if config.CORS_ORIGINS:
        middleware.append(Middleware(
            CORSMiddleware,
            allow_origins=config.CORS_ORIGINS,
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["Content-Type", config.USER_HEADER],
            allow_credentials=True,
        ))
    middleware.append(Middleware(SecurityMiddleware))
    middleware.append(Middleware(
        RateLimitMiddleware,
        max_requests=config.RATE_LIMIT_MAX_REQUESTS,
        window_seconds=config.RATE_LIMIT_WINDOW_SECONDS
    ))
    return middleware
