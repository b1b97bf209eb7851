"""Post-commit match notifications published over Redis pub/sub."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Protocol

import redis.asyncio as redis

from ..config import REDIS_URL
from ..domain import FinalizedMatch

LOGGER = logging.getLogger(__name__)

redis_client = redis.from_url(REDIS_URL, decode_responses=True)


async def broadcast(channel: str, message: Mapping[str, Any]) -> None:
    """Publish ``message`` to ``channel``; delivery failures are only logged."""

    try:
        await redis_client.publish(channel, json.dumps(message, default=str))
    except redis.RedisError:
        LOGGER.warning("Failed to publish update on channel %s", channel, exc_info=True)


class MatchEventNotifier(Protocol):
    async def match_finalized(self, result: FinalizedMatch) -> None:
        ...

    async def score_updated(self, match_id: str, summary: Mapping[str, Any]) -> None:
        ...


class RedisMatchNotifier:
    """Publishes on a channel named after the match id."""

    async def match_finalized(self, result: FinalizedMatch) -> None:
        await broadcast(
            result.match_id,
            {
                "event": "MATCH_COMPLETED",
                "matchId": result.match_id,
                "winnerId": result.winner_id,
                "loserId": result.loser_id,
                "sets": {"A": result.sets_a, "B": result.sets_b},
                "completedAt": result.completed_at.isoformat(),
            },
        )

    async def score_updated(self, match_id: str, summary: Mapping[str, Any]) -> None:
        await broadcast(match_id, {"event": "SCORE_UPDATE", "summary": dict(summary)})
