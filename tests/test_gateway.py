"""
Tests for the Supabase gateway.

The supabase client is replaced with unittest.mock objects; these tests
check row mapping and error wrapping, not the network.
"""

from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from daily_dime.config.settings import SupabaseSettings
from daily_dime.models.finance import (
    Loan,
    LoanStatus,
    Theme,
    Transaction,
    TransactionType,
    UserPreferences,
)
from daily_dime.services.gateway import (
    AuthenticationError,
    GatewayConnectionError,
    GatewayError,
    SupabaseAuthGateway,
    SupabaseClient,
    SupabaseRecordGateway,
)


def _connected_client(table: MagicMock) -> SupabaseClient:
    client = SupabaseClient(
        settings=SupabaseSettings(url="https://example.supabase.co", anon_key="anon")
    )
    client._client = MagicMock()
    client._client.table.return_value = table
    return client


def _response(data):
    return SimpleNamespace(data=data)


class TestRowMapping:
    """Tests for converting between models and table rows."""

    def test_transaction_row_has_user_id(self):
        """Test inserted transaction rows carry the owner's id."""
        gateway = SupabaseRecordGateway(_connected_client(MagicMock()))
        transaction = Transaction(
            type=TransactionType.EXPENSE,
            amount=Decimal("12.50"),
            description="Lunch",
            date="2024-03-05",
        )

        row = gateway._transaction_to_row("user-1", transaction)

        assert row["user_id"] == "user-1"
        assert row["type"] == "expense"
        assert row["id"] == transaction.id

    def test_loan_row_uses_column_name(self):
        """Test loans are written with a person_name column."""
        gateway = SupabaseRecordGateway(_connected_client(MagicMock()))
        loan = Loan(person_name="Sam", amount=Decimal("50"), date="2024-01-01")

        row = gateway._loan_to_row("user-1", loan)

        assert row["person_name"] == "Sam"
        assert "personName" not in row
        assert row["status"] == "pending"

    @pytest.mark.asyncio
    async def test_fetch_loans_maps_rows(self):
        """Test remote loan rows become Loan models."""
        table = MagicMock()
        table.select.return_value.eq.return_value.execute = AsyncMock(
            return_value=_response([
                {
                    "id": "l1",
                    "user_id": "user-1",
                    "person_name": "Sam",
                    "amount": "50",
                    "date": "2024-01-01",
                    "status": "paid",
                    "description": None,
                }
            ])
        )
        gateway = SupabaseRecordGateway(_connected_client(table))

        loans = await gateway.fetch_loans("user-1")

        assert loans[0].person_name == "Sam"
        assert loans[0].status == LoanStatus.PAID
        table.select.return_value.eq.assert_called_with("user_id", "user-1")

    @pytest.mark.asyncio
    async def test_fetch_transactions_with_trimmed_fraction(self):
        """Test timestamptz values with two-digit fractions still load."""
        table = MagicMock()
        table.select.return_value.eq.return_value.execute = AsyncMock(
            return_value=_response([
                {
                    "id": "t1",
                    "user_id": "user-1",
                    "type": "income",
                    "amount": "50",
                    "category": "Loan Repayment",
                    "description": "Repayment from Sam",
                    "date": "2024-03-01T10:00:00.12+00:00",
                    "notes": None,
                    "tags": None,
                }
            ])
        )
        gateway = SupabaseRecordGateway(_connected_client(table))

        transactions = await gateway.fetch_transactions("user-1")

        assert [t.id for t in transactions] == ["t1"]
        assert transactions[0].occurred_at.microsecond == 120000

    @pytest.mark.asyncio
    async def test_fetch_preferences_without_profile(self):
        """Test a missing profile row comes back as None."""
        table = MagicMock()
        table.select.return_value.eq.return_value.limit.return_value.execute = AsyncMock(
            return_value=_response([])
        )
        gateway = SupabaseRecordGateway(_connected_client(table))

        assert await gateway.fetch_preferences("user-1") is None

    @pytest.mark.asyncio
    async def test_upsert_preferences_row(self):
        """Test the profile row is keyed by the user id."""
        table = MagicMock()
        table.upsert.return_value.execute = AsyncMock(return_value=_response([]))
        gateway = SupabaseRecordGateway(_connected_client(table))

        await gateway.upsert_preferences("user-1", UserPreferences(theme=Theme.DARK))

        table.upsert.assert_called_once_with(
            {"id": "user-1", "currency": "INR", "theme": "dark"}
        )


class TestErrorWrapping:
    """Tests that backend failures surface as gateway errors."""

    @pytest.mark.asyncio
    async def test_insert_failure_is_gateway_error(self):
        """Test a failing insert raises GatewayError."""
        table = MagicMock()
        table.insert.return_value.execute = AsyncMock(side_effect=RuntimeError("503"))
        gateway = SupabaseRecordGateway(_connected_client(table))
        loan = Loan(person_name="Sam", amount=Decimal("50"), date="2024-01-01")

        with pytest.raises(GatewayError, match="503"):
            await gateway.insert_loan("user-1", loan)

    @pytest.mark.asyncio
    async def test_sign_in_failure_is_authentication_error(self):
        """Test a rejected password raises AuthenticationError with the backend message."""
        client = _connected_client(MagicMock())
        client._client.auth.sign_in_with_password = AsyncMock(
            side_effect=Exception("Invalid login credentials")
        )

        with pytest.raises(AuthenticationError, match="Invalid login credentials"):
            await SupabaseAuthGateway(client).sign_in("a@b.c", "nope")

    def test_client_before_connect(self):
        """Test reading the client before connect() raises."""
        client = SupabaseClient(
            settings=SupabaseSettings(url="https://example.supabase.co", anon_key="anon")
        )
        with pytest.raises(GatewayConnectionError):
            client.client


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
