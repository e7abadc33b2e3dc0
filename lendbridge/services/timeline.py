"""Timeline Fan-out — background feed writes after a successful operation.

Invariants:
    - Runs after the response; uses its own DB session (request session is closed)
    - Failures are logged and never reach the protocol or the client

Design Decisions:
    - FastAPI BackgroundTasks over a queue: at-least-once write is all that is
      promised for the feed (no retry, no dead-letter queue)
    - post_timeline takes any TimelineSink; publish_in_background binds it to SQL
"""

import logging

from lendbridge.core.domain_types import UserId
from lendbridge.core.errors import LendBridgeError
from lendbridge.core.repository_protocols import TimelineSink
from lendbridge.infrastructure.sql_stores import SqlTimeline

logger = logging.getLogger(__name__)


async def post_timeline(
    sink: TimelineSink, actor_id: UserId, kind: str, info: dict,
) -> bool:
    """Write one timeline entry. Returns False (and logs) if the sink refused it."""
    try:
        await sink.publish(actor_id, kind, info)
    except LendBridgeError as e:
        logger.error(
            f"Timeline write failed: {e.message}",
            extra={"actor_id": str(actor_id), "error_code": e.code},
        )
        return False
    logger.info(f"Timeline item {kind} posted", extra={"actor_id": str(actor_id)})
    return True


async def publish_in_background(actor_id: UserId, kind: str, info: dict) -> None:
    """Background task: write one timeline entry through a fresh SQL session."""
    from lendbridge.infrastructure.database import db_manager

    if not db_manager:
        logger.error(f"Cannot post timeline item {kind}: database not initialized")
        return

    try:
        async with db_manager.session() as db:
            await post_timeline(SqlTimeline(db), actor_id, kind, info)
    except LendBridgeError as e:
        logger.error(
            f"Timeline session failed: {e.message}",
            extra={"actor_id": str(actor_id), "error_code": e.code},
        )
