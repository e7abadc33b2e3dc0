"""Friendship ORM — read-only projection of the social graph.

Invariants:
    - One row per direction: (user_id, friend_id) means friend_id is in user_id's friend set
    - Written by the social-graph collaborator; this service only reads it
"""

import uuid

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from lendbridge.db.base import Base


class FriendshipModel(Base):
    """Directed friend edge."""
    __tablename__ = "friendships"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True,
    )
    friend_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True,
    )
