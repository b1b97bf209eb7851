import logging
import os

logger = logging.getLogger(__name__)


def _canon_prefix(val):
    """
    Normalize API prefix to always be exactly like '/api':
      - defaults to '/api' when unset/empty
      - ensures a single leading slash
      - removes any trailing slash (except for root)
    """
    val = (val or "/api").strip()
    if not val.startswith("/"):
        val = "/" + val
    if len(val) > 1 and val.endswith("/"):
        val = val[:-1]
    return val


def _parse_int(env_var: str, default: int, *, minimum: int | None = None) -> int:
    raw_value = os.getenv(env_var)
    if raw_value is None or not raw_value.strip():
        return default

    try:
        value = int(raw_value)
    except ValueError:
        logger.warning(
            "%s is not a valid integer (got %r); defaulting to %d",
            env_var,
            raw_value,
            default,
        )
        return default

    if minimum is not None and value < minimum:
        logger.warning(
            "%s cannot be lower than %d; defaulting to %d", env_var, minimum, default
        )
        return default

    return value


API_PREFIX = _canon_prefix(os.getenv("API_PREFIX"))

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379")

# League points awarded to the winner/loser of a finalized match.
POINTS_PER_WIN = _parse_int("POINTS_PER_WIN", 2, minimum=0)
POINTS_PER_LOSS = _parse_int("POINTS_PER_LOSS", 0, minimum=0)

# Credits paid to the winning team's owner account; 0 disables rewards.
WIN_REWARD_CREDITS = _parse_int("WIN_REWARD_CREDITS", 0, minimum=0)


# PIN a new tournament's scorers use until the organizer changes it.
DEFAULT_SCORER_PIN = os.getenv("DEFAULT_SCORER_PIN", "0000").strip() or "0000"
