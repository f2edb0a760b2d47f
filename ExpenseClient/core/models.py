"""Data types shared by the session, sync and analytics components."""
import datetime
import enum
import logging
import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional


class Category(enum.StrEnum):
    """Fixed set of expense categories."""
    Food = 'Food'
    Transportation = 'Transportation'
    Entertainment = 'Entertainment'
    Utilities = 'Utilities'
    Shopping = 'Shopping'
    Healthcare = 'Healthcare'
    Other = 'Other'

    @classmethod
    def parse(cls, value: Any) -> 'Category':
        """Return the matching category, or :attr:`Other` for unknown values."""
        try:
            return cls(value)
        except ValueError:
            logging.debug(f'Unknown category "{value}", using "{cls.Other}".')
            return cls.Other


# Profile keys as stored locally -> keys used by the remote store
PROFILE_FIELDS: Dict[str, str] = {
    'user_id': 'id',
    'username': 'userName',
    'email': 'email',
}


@dataclass(frozen=True)
class Session:
    """The active authenticated identity.

    Only :class:`ExpenseClient.core.session.SessionStore` creates or replaces sessions.
    """
    credential: str
    user_id: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None

    @classmethod
    def from_profile(cls, credential: str, profile: Optional[Dict[str, Any]] = None) -> 'Session':
        """Build a session from a credential and a profile dict, ignoring unknown keys."""
        profile = profile or {}
        kwargs = {}
        for k in PROFILE_FIELDS:
            v = profile.get(k)
            if v is not None:
                kwargs[k] = str(v)
        return cls(credential=credential, **kwargs)

    def profile(self) -> Dict[str, str]:
        """Return the non-empty profile fields."""
        return {k: getattr(self, k) for k in PROFILE_FIELDS if getattr(self, k) is not None}

    def with_profile(self, **fields: Any) -> 'Session':
        kwargs = {k: str(v) for k, v in fields.items() if k in PROFILE_FIELDS and v is not None}
        return replace(self, **kwargs)


def _parse_timestamp(value: Any) -> Optional[datetime.datetime]:
    if not value:
        return None
    if isinstance(value, (int, float)):
        # Epoch milliseconds
        return datetime.datetime.fromtimestamp(value / 1000.0, tz=datetime.timezone.utc)
    try:
        return datetime.datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        logging.debug(f'Could not parse timestamp "{value}".')
        return None


def is_amount(value: Any) -> bool:
    """True if ``value`` is a finite real number (booleans excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


@dataclass(frozen=True)
class ExpenseRecord:
    """One expense as returned by the remote store."""
    id: int
    name: str
    amount: float
    category: Category = Category.Other
    created_at: Optional[datetime.datetime] = field(default=None, compare=False)

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'ExpenseRecord':
        """Parse a server record.

        Accepts both the store's keys (``expenseName``, ``expenseAmount``, ``createdAt``)
        and the plain ones (``name``, ``amount``, ``date``).

        Raises:
            ValueError: If the id or amount is missing or not numeric.
        """
        if not isinstance(data, dict):
            raise ValueError(f'Expense record must be an object, got {type(data)}.')
        try:
            _id = int(data['id'])
        except (KeyError, TypeError, ValueError) as ex:
            raise ValueError(f'Expense record has no valid id: {data!r}') from ex

        amount = data.get('expenseAmount', data.get('amount'))
        try:
            amount = float(amount)
        except (TypeError, ValueError) as ex:
            raise ValueError(f'Expense record {_id} has no valid amount: {amount!r}') from ex

        return cls(
            id=_id,
            name=str(data.get('expenseName', data.get('name', '')) or ''),
            amount=amount,
            category=Category.parse(data.get('category')),
            created_at=_parse_timestamp(data.get('createdAt', data.get('date'))),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'amount': self.amount,
            'category': str(self.category),
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
