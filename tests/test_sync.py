"""
Tests for remote mirroring and fetching.

Uses the in-memory FakeRecordGateway from conftest; every mirror call
is scheduled on the running loop and awaited through drain().
"""

from decimal import Decimal

import pytest

from daily_dime.models.finance import (
    Loan,
    LoanStatus,
    PreferencesUpdate,
    Theme,
    Transaction,
    TransactionType,
    UserPreferences,
)
from daily_dime.store.sync import FetchResult, RemoteSync


def _remote_transaction(description: str = "Salary") -> Transaction:
    return Transaction(
        type=TransactionType.INCOME,
        amount=Decimal("5000"),
        category="Salary",
        description=description,
        date="2024-03-01",
    )


class TestMirroring:
    """Tests that local changes are mirrored for a signed-in user."""

    @pytest.mark.asyncio
    async def test_add_transaction_inserts(self, store, record_gateway, user, expense_draft):
        """Test adding a transaction issues one insert for the user."""
        sync = RemoteSync(store, record_gateway)
        sync.attach()
        store.set_user(user)

        created = store.add_transaction(expense_draft)
        await sync.drain()

        assert record_gateway.calls == [("insert_transaction", user.id, created)]
        assert sync.pending_count == 0

    @pytest.mark.asyncio
    async def test_delete_transaction_deletes(self, store, record_gateway, user, expense_draft):
        """Test deleting mirrors a delete by id."""
        sync = RemoteSync(store, record_gateway)
        sync.attach()
        store.set_user(user)
        created = store.add_transaction(expense_draft)

        store.delete_transaction(created.id)
        await sync.drain()

        assert record_gateway.calls[-1] == ("delete_transaction", created.id)

    @pytest.mark.asyncio
    async def test_loan_paid_issues_two_calls(self, store, record_gateway, user, loan_draft):
        """Test paying a loan mirrors a status update and a repayment insert."""
        sync = RemoteSync(store, record_gateway)
        sync.attach()
        store.set_user(user)
        loan = store.add_loan(loan_draft)

        repayment = store.mark_loan_as_paid(loan.id)
        await sync.drain()

        assert record_gateway.call_names() == [
            "insert_loan",
            "update_loan_status",
            "insert_transaction",
        ]
        assert ("update_loan_status", loan.id, LoanStatus.PAID) in record_gateway.calls
        assert ("insert_transaction", user.id, repayment) in record_gateway.calls
        assert record_gateway.loans[user.id][0].status == LoanStatus.PAID

    @pytest.mark.asyncio
    async def test_delete_loan_and_preferences(self, store, record_gateway, user, loan_draft):
        """Test loan deletes and preference upserts are mirrored."""
        sync = RemoteSync(store, record_gateway)
        sync.attach()
        store.set_user(user)
        loan = store.add_loan(loan_draft)

        store.delete_loan(loan.id)
        store.update_preferences(PreferencesUpdate(theme=Theme.DARK))
        await sync.drain()

        assert ("delete_loan", loan.id) in record_gateway.calls
        assert record_gateway.profiles[user.id] == UserPreferences(theme=Theme.DARK)

    @pytest.mark.asyncio
    async def test_no_user_no_calls(self, store, record_gateway, expense_draft):
        """Test nothing is mirrored while signed out."""
        sync = RemoteSync(store, record_gateway)
        sync.attach()

        store.add_transaction(expense_draft)
        await sync.drain()

        assert record_gateway.calls == []

    @pytest.mark.asyncio
    async def test_failed_call_is_dropped(self, store, record_gateway, user, expense_draft):
        """Test a failing mirror call leaves local state alone and raises nothing."""
        record_gateway.fail_on = {"insert_transaction"}
        sync = RemoteSync(store, record_gateway)
        sync.attach()
        store.set_user(user)

        created = store.add_transaction(expense_draft)
        await sync.drain()

        assert store.transactions == (created,)
        assert record_gateway.transactions == {}
        assert sync.pending_count == 0

    @pytest.mark.asyncio
    async def test_mutation_returns_before_mirror_runs(self, store, record_gateway, user, expense_draft):
        """Test the local change is visible before the remote call happens."""
        sync = RemoteSync(store, record_gateway)
        sync.attach()
        store.set_user(user)

        store.add_transaction(expense_draft)

        assert len(store.transactions) == 1
        assert sync.pending_count == 1
        await sync.drain()

    def test_without_event_loop_mirror_is_skipped(self, store, record_gateway, user, expense_draft):
        """Test a mutation outside any event loop still applies locally."""
        sync = RemoteSync(store, record_gateway)
        sync.attach()
        store.set_user(user)

        store.add_transaction(expense_draft)

        assert len(store.transactions) == 1
        assert record_gateway.calls == []


class TestFetchData:
    """Tests for pulling remote data into the store."""

    @pytest.mark.asyncio
    async def test_skipped_without_user(self, store, record_gateway):
        """Test fetch_data is a no-op while signed out."""
        result = await RemoteSync(store, record_gateway).fetch_data()

        assert result == FetchResult(skipped=True)
        assert not result.complete
        assert record_gateway.calls == []

    @pytest.mark.asyncio
    async def test_replaces_local_data(self, store, record_gateway, user, expense_draft):
        """Test remote collections replace local ones wholesale."""
        remote_tx = _remote_transaction()
        remote_loan = Loan(person_name="Alex", amount=Decimal("20"), date="2024-02-02")
        record_gateway.transactions[user.id] = [remote_tx]
        record_gateway.loans[user.id] = [remote_loan]
        record_gateway.profiles[user.id] = UserPreferences(currency="USD", theme=Theme.DARK)

        store.add_transaction(expense_draft)
        store.set_user(user)
        result = await RemoteSync(store, record_gateway).fetch_data()

        assert result.complete
        assert result.applied == ["transactions", "loans", "preferences"]
        assert store.transactions == (remote_tx,)
        assert store.loans == (remote_loan,)
        assert store.preferences.currency == "USD"

    @pytest.mark.asyncio
    async def test_missing_profile_keeps_local_preferences(self, store, record_gateway, user):
        """Test a user without a profile row keeps local preferences."""
        store.update_preferences(PreferencesUpdate(currency="GBP"))
        store.set_user(user)

        result = await RemoteSync(store, record_gateway).fetch_data()

        assert result.applied == ["transactions", "loans"]
        assert store.preferences.currency == "GBP"

    @pytest.mark.asyncio
    async def test_partial_failure(self, store, record_gateway, user, loan_draft):
        """Test a failed loans read keeps local loans but applies the rest."""
        remote_tx = _remote_transaction()
        record_gateway.transactions[user.id] = [remote_tx]
        record_gateway.fail_on = {"fetch_loans"}
        local_loan = store.add_loan(loan_draft)
        store.set_user(user)

        result = await RemoteSync(store, record_gateway).fetch_data()

        assert not result.complete
        assert set(result.failed) == {"loans"}
        assert store.loans == (local_loan,)
        assert store.transactions == (remote_tx,)

    @pytest.mark.asyncio
    async def test_fetched_data_is_not_mirrored_back(self, store, record_gateway, user):
        """Test replacing data from the remote issues no write calls."""
        record_gateway.transactions[user.id] = [_remote_transaction()]
        sync = RemoteSync(store, record_gateway)
        sync.attach()
        store.set_user(user)

        await sync.fetch_data()
        await sync.drain()

        assert set(record_gateway.call_names()) == {
            "fetch_transactions",
            "fetch_loans",
            "fetch_preferences",
        }


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
