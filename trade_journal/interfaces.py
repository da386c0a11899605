"""
interfaces.py
-------------

Collaborator interfaces used by the journal service. Storage and
identity live behind these so the SQLite and REST backends are
interchangeable and tests can substitute in-memory fakes.
"""

import abc
from typing import Any, Dict, List, Optional

from .models import NewTrade, TradeRecord


class IdentityProvider(abc.ABC):
    @abc.abstractmethod
    def get_current_user(self) -> Optional[str]:
        """Return the id of the signed-in user, or None."""

    def is_authenticated(self) -> bool:
        return self.get_current_user() is not None


class StaticIdentity(IdentityProvider):
    """Single-user mode: the owner is fixed by configuration."""

    def __init__(self, user_id: Optional[str]) -> None:
        self.user_id = user_id

    def get_current_user(self) -> Optional[str]:
        return self.user_id


class TradeStore(abc.ABC):
    @abc.abstractmethod
    def list_trades(self, owner_id: str) -> List[Dict[str, Any]]:
        """Return raw stored rows for one owner, in any order.

        Raises StorageUnavailable when the backend cannot be reached.
        """

    @abc.abstractmethod
    def insert_trade(self, owner_id: str, trade: NewTrade) -> TradeRecord:
        """Persist one trade and return it with its assigned id."""


class SettingsStore(abc.ABC):
    @abc.abstractmethod
    def get_starting_capital(self, owner_id: str) -> Optional[float]:
        """Return the owner's starting capital, or None when never set."""

    @abc.abstractmethod
    def set_starting_capital(self, owner_id: str, value: float) -> None:
        ...
