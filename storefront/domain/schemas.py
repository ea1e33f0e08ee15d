# storefront/domain/schemas.py
from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from storefront.domain.price import apply_discount, to_usd_string


def split_delimited(value) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [str(part).strip() for part in value if str(part).strip()]


class CartItem(BaseModel):
    """Pozycja koszyka zapisywana w blobie sesji."""

    product_id: int
    quantity: int = Field(..., ge=1)

    model_config = ConfigDict(frozen=True)


class CartItemIn(BaseModel):
    """Zmiana ilosci produktu w koszyku; quantity to delta (moze byc ujemna, 0 usuwa)."""

    product_id: int = Field(..., gt=0, description="ID produktu (musi byc > 0)")
    quantity: int = Field(1, description="Zmiana ilosci: >0 dodaje, <0 odejmuje, 0 usuwa")


class CartLineOut(BaseModel):
    product_id: int
    name: str
    quantity: int
    unit_price_cents: int
    line_total_cents: int
    thumbnail_url: str | None = None


class CartOut(BaseModel):
    """Schema dla koszyka (response)."""

    items: List[CartLineOut]
    item_count: int
    total_cents: int
    total_display: str


class CheckoutIn(BaseModel):
    payment_token: str = Field(..., min_length=1, description="Token platnosci od dostawcy")


class CheckoutOut(BaseModel):
    state: str
    total_cents: int
    total_display: str
    items: List[CartItem]


class ProductOut(BaseModel):
    """Produkt w postaci do wyswietlenia (listy rozbite z tekstu)."""

    product_id: int = Field(validation_alias="id")
    name: str
    price_cents: int = Field(validation_alias="price")
    price_display: str = ""
    discounted_price_cents: int | None = None
    inventory: int
    category: str
    tags: List[str] = []
    keywords: List[str] = []
    gallery_urls: List[str] = []
    thumbnail_url: str | None = None
    tagline: str | None = None
    description: str | None = None
    discount_percent: float | None = None
    added_date: datetime | None = None
    restock_date: datetime | None = None

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    @field_validator("tags", "keywords", "gallery_urls", mode="before")
    @classmethod
    def _split(cls, value):
        return split_delimited(value)

    @model_validator(mode="after")
    def _prices(self):
        self.price_display = to_usd_string(self.price_cents)
        if self.discount_percent:
            self.discounted_price_cents = apply_discount(self.price_cents, self.discount_percent)
        return self


class ProductPage(BaseModel):
    products: List[ProductOut]
    categories: List[str]
    current_page: int
    total_pages: int
    total_items: int
    filter_query: str


class ProductIn(BaseModel):
    """Schema dla tworzenia/edycji produktu (admin)."""

    name: str = Field(..., min_length=1, max_length=200)
    price: float = Field(..., ge=0, description="Cena w dolarach, zapisywana w centach")
    inventory: int = Field(..., ge=0)
    category: str | None = None
    tags: List[str] = []
    keywords: List[str] = []
    thumbnail_url: str | None = None
    gallery_urls: List[str] = []
    tagline: str | None = None
    description: str | None = None
    discount_percent: float | None = Field(None, ge=0, le=100)


class IndexOut(BaseModel):
    site_name: str
    categories: List[str]
    cart_item_count: int
