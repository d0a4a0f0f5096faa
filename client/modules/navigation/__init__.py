"""
Navigation module.

Owns the routing table that maps authentication state to a destination,
and the router interface the auth layer drives.

Public API:
- Route: Destinations
- decide_destination: The single routing decision function
- IRouter / HistoryRouter: Router interface and in-process implementation
"""

from .models import Route, IDENTITY_GATE_ROUTES
from .decision import ROUTING_TABLE, RouteRule, decide_destination
from .router import IRouter, HistoryRouter, is_on, is_on_identity_gate

__all__ = [
    "Route",
    "IDENTITY_GATE_ROUTES",
    "ROUTING_TABLE",
    "RouteRule",
    "decide_destination",
    "IRouter",
    "HistoryRouter",
    "is_on",
    "is_on_identity_gate",
]
