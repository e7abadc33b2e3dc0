"""ORM Models — SQLAlchemy declarative models for all persisted entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - LoanTransaction is the aggregate root of a negotiation; messages reference it

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs (ADR: standard SQLAlchemy pattern)
"""

from lendbridge.models.listing import ListingModel  # noqa: F401
from lendbridge.models.loan_transaction import LoanTransactionModel  # noqa: F401
from lendbridge.models.message import MessageModel, MailboxEntryModel  # noqa: F401
from lendbridge.models.friendship import FriendshipModel  # noqa: F401
from lendbridge.models.timeline_item import TimelineItemModel  # noqa: F401
