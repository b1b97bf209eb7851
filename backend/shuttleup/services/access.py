"""Tournament level permission checks."""

from __future__ import annotations

import hmac

from ..domain import Authorization, TournamentRecord, UserRole
from ..exceptions import PermissionDenied


def is_organizer(tournament: TournamentRecord, auth: Authorization) -> bool:
    if auth.role == UserRole.SUPERADMIN:
        return True
    return auth.user_id is not None and auth.user_id == tournament.organizer_id


def _pin_matches(expected: str | None, supplied: str | None) -> bool:
    if not expected or not supplied:
        return False
    return hmac.compare_digest(expected.encode(), supplied.strip().encode())


def require_organizer(tournament: TournamentRecord, auth: Authorization) -> None:
    if not is_organizer(tournament, auth):
        raise PermissionDenied()


def require_scorer(tournament: TournamentRecord, auth: Authorization) -> None:
    """Organizers, superadmins and holders of the tournament scorer PIN pass."""

    if is_organizer(tournament, auth):
        return
    if _pin_matches(tournament.scorer_pin, auth.scorer_pin):
        return
    raise PermissionDenied()
