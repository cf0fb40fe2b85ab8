"""In-memory account registry shared by the request handlers."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from .models import Account


class UserRegistry:
    """Email-keyed store of :class:`Account` records.

    Every access is serialised through a single re-entrant lock. Handlers that
    need a check followed by a write wrap both in :meth:`locked` so the
    sequence is applied atomically.
    """

    def __init__(self) -> None:
        self._accounts: Dict[str, Account] = {}
        self._lock = threading.RLock()

    @contextmanager
    def locked(self) -> Iterator["UserRegistry"]:
        with self._lock:
            yield self

    def has(self, email: str) -> bool:
        with self._lock:
            return email in self._accounts

    def get(self, email: str) -> Optional[Account]:
        with self._lock:
            return self._accounts.get(email)

    def put(self, email: str, account: Account) -> None:
        if account.email != email:
            raise ValueError("Account email must match the registry key")
        with self._lock:
            self._accounts[email] = account

    def size(self) -> int:
        with self._lock:
            return len(self._accounts)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._accounts.keys())

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, email: object) -> bool:
        return isinstance(email, str) and self.has(email)


__all__ = ["UserRegistry"]
