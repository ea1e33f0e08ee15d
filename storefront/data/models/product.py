# storefront/data/models/product.py
from datetime import datetime, timezone

from sqlalchemy import BigInteger, CheckConstraint, Column, DateTime, Float, Integer, String, Text

from storefront.data.database import Base


class ProductModel(Base):
    __tablename__ = "product"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)

    # cena w centach, nigdy float
    price = Column(BigInteger, nullable=False)
    inventory = Column(Integer, nullable=False, default=0)
    category = Column(String, nullable=False, index=True)

    # listy trzymane jako tekst rozdzielany przecinkami
    tags = Column(Text, nullable=True)
    keywords = Column(Text, nullable=True)
    thumbnail_url = Column(Text, nullable=True)
    gallery_urls = Column(Text, nullable=True)

    tagline = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    discount_percent = Column(Float, nullable=True)

    added_date = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    restock_date = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("inventory >= 0", name="ck_product_inventory_non_negative"),
    )
