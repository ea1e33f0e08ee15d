# storefront/services/session_resolver.py
import uuid
from dataclasses import dataclass, field
from typing import List

from sqlalchemy.orm import Session

from storefront.domain.errors import StorageUnavailable
from storefront.domain.schemas import CartItem
from storefront.repos.session_repo import SessionRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class SessionContext:
    session_id: str
    was_created: bool
    user_id: int | None = None
    cart: List[CartItem] = field(default_factory=list)
    ip_address: str = ""
    user_agent: str = ""


def parse_token(token: str | None) -> str | None:
    """Token z cookie musi byc poprawnym UUID, inaczej traktujemy go jak brak."""
    if not token:
        return None
    try:
        return str(uuid.UUID(token))
    except ValueError:
        return None


class SessionResolver:
    """
    Wywolywany raz na poczatku obslugi requestu.
    Cookie + ip + user-agent -> SessionContext (zwykla wartosc, bez zaleznosci od HTTP).
    Ustawienie cookie przy was_created robi warstwa HTTP.
    """

    def __init__(self, db: Session):
        self.repo = SessionRepo(db)

    def resolve(self, token: str | None, ip: str, user_agent: str) -> SessionContext:
        session_id = parse_token(token)
        row = None

        if session_id is not None:
            try:
                row = self.repo.find(session_id)
            except StorageUnavailable as e:
                # lookup padl - probujemy zalozyc nowa sesje
                logger.warning(f"Session lookup failed for {session_id}, creating new session: {e}")
                row = None

            if row is None:
                logger.info(f"Session {session_id} not found/bad. Making new session.")
        else:
            logger.info(f"No valid session cookie. Creating new session for ip={ip}")

        was_created = False
        if row is None:
            # StorageUnavailable z create idzie wyzej - tego nie da sie obejsc
            row = self.repo.create(ip, user_agent)
            was_created = True

        return SessionContext(
            session_id=row.session_id,
            was_created=was_created,
            user_id=row.user_id,
            cart=self.repo.load_cart(row),
            ip_address=ip,
            user_agent=user_agent,
        )
