"""
Controllers: the action execution pipeline, response dispatch,
format negotiation, Turbo helpers and routing.
"""

from .base import Controller
from .dispatcher import ResponseDispatcher, coerce_response
from .negotiation import negotiate_format, parse_accept
from .routing import build_router, route_for
from .turbo import TurboMixin

__all__ = [
    "Controller",
    "ResponseDispatcher",
    "TurboMixin",
    "build_router",
    "coerce_response",
    "negotiate_format",
    "parse_accept",
    "route_for",
]
