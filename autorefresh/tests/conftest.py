from __future__ import annotations

import pytest


class FakeLedgerClient:
    """In-memory stand-in for LedgerClient used by dashboard tests."""

    def __init__(self):
        self.users = [{"name": "alice"}, {"name": "bob"}]
        self.balances = {"alice": 120.5, "bob": 7.0}
        self.transactions = [{"from": "alice", "to": "bob", "amount": 3.0}]
        self.status = {"node": "n1", "lamport_time": 4, "peers": 2}
        self.calls: dict[str, int] = {}
        self.fail: set[str] = set()

    def _hit(self, op: str) -> None:
        self.calls[op] = self.calls.get(op, 0) + 1
        if op in self.fail:
            raise RuntimeError(f"{op} unavailable")

    async def list_users(self):
        self._hit("users")
        return list(self.users)

    async def get_balance(self, user):
        self._hit("balance")
        return self.balances[user]

    async def list_transactions(self, user=None):
        self._hit("transactions")
        return [
            tx for tx in self.transactions if user is None or user in (tx["from"], tx["to"])
        ]

    async def get_system_status(self):
        self._hit("status")
        return dict(self.status)

    def close(self):
        pass


@pytest.fixture(name="fake_ledger")
def fixture_fake_ledger():
    return FakeLedgerClient()
