"""
Remote Gateway Package

Provides abstract interfaces and the Supabase implementation
for remote records and authentication.
"""

from daily_dime.services.gateway.interface import (
    AuthChangeListener,
    AuthenticationError,
    AuthGatewayInterface,
    GatewayConnectionError,
    GatewayError,
    RecordGatewayInterface,
)
from daily_dime.services.gateway.supabase_gateway import (
    SupabaseAuthGateway,
    SupabaseClient,
    SupabaseRecordGateway,
)

__all__ = [
    # Interfaces
    "AuthChangeListener",
    "AuthGatewayInterface",
    "RecordGatewayInterface",
    # Exceptions
    "AuthenticationError",
    "GatewayConnectionError",
    "GatewayError",
    # Supabase implementation
    "SupabaseAuthGateway",
    "SupabaseClient",
    "SupabaseRecordGateway",
]
