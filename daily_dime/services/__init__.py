"""Services package."""

from daily_dime.services.gateway import (
    AuthChangeListener,
    AuthenticationError,
    AuthGatewayInterface,
    GatewayConnectionError,
    GatewayError,
    RecordGatewayInterface,
    SupabaseAuthGateway,
    SupabaseClient,
    SupabaseRecordGateway,
)

__all__ = [
    "AuthChangeListener",
    "AuthenticationError",
    "AuthGatewayInterface",
    "GatewayConnectionError",
    "GatewayError",
    "RecordGatewayInterface",
    "SupabaseAuthGateway",
    "SupabaseClient",
    "SupabaseRecordGateway",
]
