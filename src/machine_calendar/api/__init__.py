"""Public API surface for the HTTP server and the command line."""

from __future__ import annotations

from .registry import ApiFunction, call_api, call_api_async, get_api_function, get_api_functions, register_api
from .state import api_state

# Import endpoints so decorators run at module import time.
from . import endpoints, meta  # noqa: F401

__all__ = [
    "ApiFunction",
    "api_state",
    "call_api",
    "call_api_async",
    "get_api_function",
    "get_api_functions",
    "register_api",
]
