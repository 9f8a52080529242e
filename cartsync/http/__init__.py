"""
HTTP — the request pipeline and the refresh call that bypasses it.

    from cartsync import http as H

    pipeline = H.RequestPipeline(client, token_store)
    cart = await pipeline.get("/cart")

    # substitute the refresh call independently in tests
    pipeline = H.RequestPipeline(client, token_store, refresher=FakeRefresher())
"""

from cartsync.http._responses import json_body, error_from_response
from cartsync.http._refresh import TokenRefresher, HttpTokenRefresher
from cartsync.http._pipeline import (
    Method,
    LoginRequired,
    RequestState,
    Call,
    Attempt,
    FIRST_ATTEMPT,
    RequestPipeline,
)

__all__ = (
    "json_body",
    "error_from_response",
    "TokenRefresher",
    "HttpTokenRefresher",
    "Method",
    "LoginRequired",
    "RequestState",
    "Call",
    "Attempt",
    "FIRST_ATTEMPT",
    "RequestPipeline",
)
