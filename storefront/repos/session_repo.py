# storefront/repos/session_repo.py
import uuid
from datetime import datetime, timedelta, timezone
from typing import List

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.session import SessionModel
from storefront.domain.errors import SessionRowMissing, StorageUnavailable
from storefront.domain.schemas import CartItem
from storefront.utils.settings import SESSION_ENFORCE_EXPIRY, SESSION_TTL_DAYS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

_CART_ADAPTER = TypeAdapter(List[CartItem])


def serialize_cart(cart: List[CartItem]) -> list:
    return [item.model_dump() for item in cart]


def deserialize_cart(blob, session_id: str | None = None) -> List[CartItem]:
    """Blob z bazy -> lista CartItem. Uszkodzony blob daje pusty koszyk, nigdy wyjatek."""
    if blob is None:
        return []
    try:
        items = _CART_ADAPTER.validate_python(blob)
    except ValidationError as e:
        logger.warning(f"Malformed cart data for session {session_id}, using empty cart: {e}")
        return []

    # max jeden wpis na produkt
    product_ids = [item.product_id for item in items]
    if len(product_ids) != len(set(product_ids)):
        logger.warning(f"Duplicate cart entries for session {session_id}, using empty cart")
        return []
    return items


class SessionRepo:
    """
    Session store - wiersze sesji i koszyk jako jeden blob JSON.
    Tylko ten modul wie jak koszyk wyglada w bazie.
    """

    def __init__(self, db: Session, enforce_expiry: bool = SESSION_ENFORCE_EXPIRY):
        self.db = db
        self.enforce_expiry = enforce_expiry

    def find(self, session_id: str) -> SessionModel | None:
        # populate_existing: wiersz z identity map moze byc starszy niz to co jest w bazie
        query = (
            select(SessionModel)
            .where(SessionModel.session_id == session_id)
            .execution_options(populate_existing=True)
        )
        if self.enforce_expiry:
            query = query.where(SessionModel.expires_at >= datetime.now(timezone.utc))

        try:
            row = self.db.execute(query).scalar_one_or_none()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"DB error while finding session {session_id}: {e}")
            raise StorageUnavailable("find_session", e, session_id=session_id) from e

        if row is None:
            logger.debug(f"No session found for session_id={session_id}")
        return row

    def create(self, ip: str, user_agent: str) -> SessionModel:
        now = datetime.now(timezone.utc)
        row = SessionModel(
            session_id=str(uuid.uuid4()),
            user_id=None,
            created_at=now,
            updated_at=now,
            expires_at=now + timedelta(days=SESSION_TTL_DAYS),
            ip_address=ip,
            user_agent=user_agent,
            cart_data=[],
        )
        try:
            self.db.add(row)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to insert new session: {e}")
            raise StorageUnavailable("create_session", e) from e

        logger.info(f"Created new session {row.session_id} for ip {ip}")
        return row

    def load_cart(self, row: SessionModel) -> List[CartItem]:
        return deserialize_cart(row.cart_data, row.session_id)

    def update_cart(self, session_id: str, cart: List[CartItem]) -> None:
        """Zapis koszyka + updated_at jednym UPDATE; 0 wierszy to blad spojnosci."""
        logger.info(f"Updating session {session_id} with new cart ({len(cart)} items)")
        try:
            rowcount = self.db.execute(
                update(SessionModel)
                .where(SessionModel.session_id == session_id)
                .values(cart_data=serialize_cart(cart), updated_at=datetime.now(timezone.utc))
                .execution_options(synchronize_session=False)
            ).rowcount

            if rowcount == 0:
                self.db.rollback()
                logger.warning(f"Failed to update cart for session_id {session_id}")
                raise SessionRowMissing(session_id)

            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"DB error on cart update for session {session_id}: {e}")
            raise StorageUnavailable("update_cart", e, session_id=session_id) from e

    def purge_expired(self) -> int:
        now = datetime.now(timezone.utc)
        try:
            rowcount = self.db.execute(
                delete(SessionModel)
                .where(SessionModel.expires_at < now)
                .execution_options(synchronize_session=False)
            ).rowcount
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Purging expired sessions failed: {e}")
            raise StorageUnavailable("purge_sessions", e) from e
        return rowcount
