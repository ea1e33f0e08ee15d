# storefront/data/models/session.py
from sqlalchemy import JSON, Column, DateTime, Integer, String
from sqlalchemy.dialects.postgresql import JSONB

from storefront.data.database import Base


class SessionModel(Base):
    __tablename__ = "session"

    session_id = Column(String(36), primary_key=True)
    user_id = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)

    ip_address = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)

    # koszyk jako jeden blob [{product_id, quantity}, ...]
    cart_data = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=True)
