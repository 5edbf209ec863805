"""In-memory transaction store for one user session.

The store is the single owner of the transaction list. Analytics never
read it implicitly: callers pass ``store.list_all()`` (or the store itself
to ``SnapshotCache``) after each mutation. ``version`` increases on every
mutation so derived values can be cached against it.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Protocol

from .exceptions import DuplicateTransactionError, TransactionNotFoundError
from .logging_setup import get_logger
from .models import Transaction

logger = get_logger(__name__)


class Repository(Protocol):
    def load(self) -> List[Transaction]: ...

    def save(self, transactions: Iterable[Transaction]) -> None: ...

    def delete(self) -> None: ...


class TransactionStore:
    """Ordered collection of transactions, newest first."""

    def __init__(
        self,
        transactions: Optional[Iterable[Transaction]] = None,
        repository: Optional[Repository] = None,
    ):
        self._items: List[Transaction] = []
        self._version = 0
        self.repository = repository
        if transactions:
            items = list(transactions)
            self._check_unique(items)
            self._items = items

    @classmethod
    def from_repository(cls, repository: Repository) -> 'TransactionStore':
        """Load the stored list wholesale and keep persisting to it."""
        return cls(repository.load(), repository=repository)

    @property
    def version(self) -> int:
        return self._version

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(list(self._items))

    def list_all(self) -> List[Transaction]:
        """Return a copy of all transactions in display order."""
        return list(self._items)

    def get(self, transaction_id: str) -> Optional[Transaction]:
        for item in self._items:
            if item.id == transaction_id:
                return item
        return None

    def add(self, transaction: Transaction) -> Transaction:
        self.add_many([transaction])
        return transaction

    def add_many(self, transactions: Iterable[Transaction]) -> List[Transaction]:
        """Prepend a batch atomically.

        Either every transaction is added or, on a duplicate id, none is.
        """
        batch = list(transactions)
        if not batch:
            return []
        self._check_unique(batch + self._items)
        self._items = batch + self._items
        self._changed(f"added {len(batch)} transaction(s)")
        return batch

    def remove(self, transaction_id: str) -> Transaction:
        for index, item in enumerate(self._items):
            if item.id == transaction_id:
                del self._items[index]
                self._changed(f"removed {transaction_id}")
                return item
        raise TransactionNotFoundError(f"Transaction '{transaction_id}' not found")

    def clear(self) -> None:
        """Drop every transaction and the stored file."""
        self._items = []
        self._version += 1
        logger.info("Cleared all transactions")
        if self.repository is not None:
            self.repository.delete()

    def _changed(self, reason: str) -> None:
        self._version += 1
        logger.debug("Store v%d: %s", self._version, reason)
        if self.repository is not None:
            self.repository.save(self._items)

    @staticmethod
    def _check_unique(items: List[Transaction]) -> None:
        seen = set()
        for item in items:
            if item.id in seen:
                raise DuplicateTransactionError(f"Transaction id '{item.id}' already exists")
            seen.add(item.id)
