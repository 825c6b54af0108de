import sys
import os
import random
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from account import ClientAccount
from errors import (
    AccountLocked,
    AmountOverflow,
    DisputeAlreadyClosed,
    DisputeAlreadyOpen,
    DisputeNotFound,
    DomainError,
    DuplicateTransaction,
    InsufficientFunds,
    TransactionNotFound,
)
from models import LockedPolicy


def funded_account(amount: str = "100", policy: LockedPolicy = LockedPolicy.REJECT_ALL) -> ClientAccount:
    account = ClientAccount(client_id=1, locked_policy=policy)
    account.deposit(1, Decimal(amount))
    return account


def charged_back_account(policy: LockedPolicy) -> ClientAccount:
    account = funded_account(policy=policy)
    account.deposit(2, Decimal("50"))
    account.dispute(1)
    account.chargeback(1)
    return account


def full_state(account: ClientAccount):
    return (
        account.snapshot(),
        dict(account.transactions),
        set(account.open_disputes),
        set(account.resolved),
        set(account.charged_back),
    )


class TestScenarios:
    def test_deposit(self):
        account = funded_account()
        assert account.snapshot() == (Decimal("100"), Decimal("0"), Decimal("100"), False)

    def test_deposit_then_dispute(self):
        account = funded_account()
        account.dispute(1)
        assert account.snapshot() == (Decimal("0"), Decimal("100"), Decimal("100"), False)
        assert account.open_disputes == {1}

    def test_dispute_then_resolve(self):
        account = funded_account()
        account.dispute(1)
        account.resolve(1)
        assert account.snapshot() == (Decimal("100"), Decimal("0"), Decimal("100"), False)
        assert account.open_disputes == set()
        assert account.resolved == {1}

    def test_dispute_then_chargeback(self):
        account = funded_account()
        account.dispute(1)
        account.chargeback(1)
        assert account.snapshot() == (Decimal("0"), Decimal("0"), Decimal("0"), True)
        assert account.open_disputes == set()
        assert account.charged_back == {1}

    def test_withdrawal_over_available_rejected(self):
        account = funded_account()
        with pytest.raises(InsufficientFunds):
            account.withdrawal(2, Decimal("150"))
        assert account.snapshot() == (Decimal("100"), Decimal("0"), Decimal("100"), False)
        assert 2 not in account.transactions

    def test_dispute_unknown_transaction(self):
        account = funded_account()
        with pytest.raises(TransactionNotFound):
            account.dispute(99)
        assert account.snapshot() == (Decimal("100"), Decimal("0"), Decimal("100"), False)


class TestTransitions:
    def test_withdrawal(self):
        account = funded_account()
        account.withdrawal(2, Decimal("60"))
        assert account.available == Decimal("40")
        assert account.total == Decimal("40")
        assert account.transactions == {1: Decimal("100"), 2: Decimal("60")}

    def test_withdrawal_of_entire_balance(self):
        account = funded_account()
        account.withdrawal(2, Decimal("100"))
        assert account.available == Decimal("0")

    def test_duplicate_deposit(self):
        account = funded_account()
        with pytest.raises(DuplicateTransaction):
            account.deposit(1, Decimal("100"))
        assert account.available == Decimal("100")

    def test_duplicate_withdrawal(self):
        account = funded_account()
        account.withdrawal(2, Decimal("10"))
        with pytest.raises(DuplicateTransaction):
            account.withdrawal(2, Decimal("10"))
        assert account.available == Decimal("90")

    def test_withdrawal_reusing_deposit_id(self):
        account = funded_account()
        with pytest.raises(DuplicateTransaction):
            account.withdrawal(1, Decimal("10"))

    def test_dispute_withdrawal(self):
        account = funded_account()
        account.withdrawal(2, Decimal("30"))
        account.dispute(2)
        assert account.snapshot() == (Decimal("40"), Decimal("30"), Decimal("70"), False)

    def test_dispute_with_insufficient_available(self):
        account = funded_account()
        account.withdrawal(2, Decimal("30"))
        with pytest.raises(InsufficientFunds):
            account.dispute(1)
        assert account.snapshot() == (Decimal("70"), Decimal("0"), Decimal("70"), False)
        assert account.open_disputes == set()

    def test_dispute_twice(self):
        account = funded_account()
        account.dispute(1)
        with pytest.raises(DisputeAlreadyOpen):
            account.dispute(1)
        assert account.held == Decimal("100")

    def test_redispute_after_resolve(self):
        account = funded_account()
        account.dispute(1)
        account.resolve(1)
        account.dispute(1)
        assert account.open_disputes == {1}
        assert account.resolved == set()
        account.chargeback(1)
        assert account.snapshot() == (Decimal("0"), Decimal("0"), Decimal("0"), True)

    def test_resolve_without_dispute(self):
        account = funded_account()
        with pytest.raises(DisputeNotFound):
            account.resolve(1)
        assert account.available == Decimal("100")

    def test_chargeback_without_dispute(self):
        account = funded_account()
        with pytest.raises(DisputeNotFound):
            account.chargeback(1)
        assert account.locked is False

    def test_chargeback_after_resolve(self):
        account = funded_account()
        account.dispute(1)
        account.resolve(1)
        with pytest.raises(DisputeNotFound):
            account.chargeback(1)
        assert account.snapshot() == (Decimal("100"), Decimal("0"), Decimal("100"), False)

    def test_resolve_unknown_transaction(self):
        account = funded_account()
        with pytest.raises(DisputeNotFound):
            account.resolve(42)

    def test_multiple_disputes(self):
        account = funded_account()
        account.deposit(2, Decimal("50"))
        account.dispute(1)
        account.dispute(2)
        account.resolve(1)
        account.chargeback(2)
        assert account.snapshot() == (Decimal("100"), Decimal("0"), Decimal("100"), True)

    def test_decimal_precision(self):
        account = ClientAccount(client_id=1)
        account.deposit(1, Decimal("1.2345"))
        account.deposit(2, Decimal("0.0001"))
        account.withdrawal(3, Decimal("0.2346"))
        assert account.available == Decimal("1.0000")


class TestLockedRejectAll:
    def test_rejects_deposit(self):
        account = charged_back_account(LockedPolicy.REJECT_ALL)
        before = account.snapshot()
        with pytest.raises(AccountLocked):
            account.deposit(3, Decimal("10"))
        assert account.snapshot() == before

    def test_rejects_withdrawal(self):
        account = charged_back_account(LockedPolicy.REJECT_ALL)
        with pytest.raises(AccountLocked):
            account.withdrawal(3, Decimal("10"))

    def test_rejects_dispute(self):
        account = charged_back_account(LockedPolicy.REJECT_ALL)
        with pytest.raises(AccountLocked):
            account.dispute(2)

    def test_rejects_resolve_and_chargeback_of_open_dispute(self):
        account = funded_account(policy=LockedPolicy.REJECT_ALL)
        account.deposit(2, Decimal("50"))
        account.dispute(1)
        account.dispute(2)
        account.chargeback(1)

        with pytest.raises(AccountLocked):
            account.resolve(2)
        with pytest.raises(AccountLocked):
            account.chargeback(2)
        assert account.held == Decimal("50")
        assert account.open_disputes == {2}


class TestLockedBlockDisputes:
    def test_accepts_deposit_and_withdrawal(self):
        account = charged_back_account(LockedPolicy.BLOCK_DISPUTES)
        account.deposit(3, Decimal("10"))
        account.withdrawal(4, Decimal("20"))
        assert account.snapshot() == (Decimal("40"), Decimal("0"), Decimal("40"), True)

    def test_rejects_new_dispute(self):
        account = charged_back_account(LockedPolicy.BLOCK_DISPUTES)
        with pytest.raises(AccountLocked):
            account.dispute(2)
        assert account.held == Decimal("0")

    def test_settles_already_open_dispute(self):
        account = funded_account(policy=LockedPolicy.BLOCK_DISPUTES)
        account.deposit(2, Decimal("50"))
        account.dispute(1)
        account.dispute(2)
        account.chargeback(1)

        account.resolve(2)
        assert account.snapshot() == (Decimal("50"), Decimal("0"), Decimal("50"), True)

    def test_charged_back_transaction_cannot_be_disputed_again(self):
        account = ClientAccount(client_id=1, locked_policy=LockedPolicy.BLOCK_DISPUTES)
        account.deposit(1, Decimal("100"))
        account.dispute(1)
        account.chargeback(1)
        account.locked = False
        with pytest.raises(DisputeAlreadyClosed):
            account.dispute(1)


class TestInvariants:
    def assert_invariants(self, account: ClientAccount):
        assert account.total == account.available + account.held
        assert account.available >= 0
        assert account.held >= 0
        assert account.open_disputes <= set(account.transactions)
        assert not account.open_disputes & account.resolved
        assert not account.open_disputes & account.charged_back

    @pytest.mark.parametrize("policy", list(LockedPolicy))
    @pytest.mark.parametrize("seed", range(20))
    def test_random_operation_sequences(self, seed, policy):
        rng = random.Random(seed)
        account = ClientAccount(client_id=1, locked_policy=policy)

        for _ in range(200):
            tx = rng.randint(1, 30)
            amount = Decimal(rng.randint(0, 50000)) / Decimal(100)
            operation = rng.choice(["deposit", "withdrawal", "dispute", "resolve", "chargeback"])
            before = full_state(account)
            try:
                if operation in ("deposit", "withdrawal"):
                    getattr(account, operation)(tx, amount)
                else:
                    getattr(account, operation)(tx)
            except DomainError:
                assert full_state(account) == before
            self.assert_invariants(account)

    def test_replayed_deposit_leaves_state_unchanged(self):
        account = funded_account()
        account.withdrawal(2, Decimal("25"))
        account.dispute(1)
        state = (account.snapshot(), dict(account.transactions), set(account.open_disputes))

        with pytest.raises(DuplicateTransaction):
            account.deposit(1, Decimal("999"))
        with pytest.raises(DuplicateTransaction):
            account.withdrawal(2, Decimal("1"))

        assert (account.snapshot(), dict(account.transactions), set(account.open_disputes)) == state


class TestPrecisionLimit:
    LARGE = Decimal("99999999999999999999999.9999")

    def test_balance_past_precision_is_rejected(self):
        account = ClientAccount(client_id=1)
        for transaction_id in range(1, 11):
            account.deposit(transaction_id, self.LARGE)
        assert account.available == Decimal("999999999999999999999999.9990")
        before = full_state(account)

        with pytest.raises(AmountOverflow):
            account.deposit(11, self.LARGE)

        assert full_state(account) == before

    def test_total_past_precision_is_rejected(self):
        account = ClientAccount(client_id=1)
        account.deposit(1, Decimal("999999999999999999999999.9990"))
        account.dispute(1)
        before = full_state(account)

        # available alone stays exact, available + held does not
        with pytest.raises(AmountOverflow):
            account.deposit(2, Decimal("0.0011"))

        assert full_state(account) == before
        assert 2 not in account.transactions

    def test_exact_large_sums_are_kept(self):
        account = ClientAccount(client_id=1)
        account.deposit(1, Decimal("400000000000000000000000.0001"))
        account.deposit(2, Decimal("499999999999999999999999.9999"))
        assert account.total == Decimal("900000000000000000000000.0000")
