# storefront/repos/product_repo.py
from dataclasses import dataclass
from typing import Iterable, List

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel
from storefront.domain.errors import InsufficientInventory, ProductNotFound, StorageUnavailable
from storefront.domain.schemas import CartItem
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProductFilter:
    category: str | None = None
    tag: str | None = None
    search: str | None = None


def _present(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return value.strip()


class ProductRepo:
    """
    Inventory store - jedyne zrodlo prawdy o stanie magazynu.
    Commit robi wolajacy (serwis), poza prostymi operacjami admina.
    """

    def __init__(self, db: Session):
        self.db = db

    def _apply_filter(self, query, flt: ProductFilter):
        category = _present(flt.category)
        if category:
            query = query.where(ProductModel.category == category)

        tag = _present(flt.tag)
        if tag:
            query = query.where(ProductModel.tags.like(f"%{tag}%"))

        search = _present(flt.search)
        if search:
            like = f"%{search}%"
            query = query.where(
                or_(
                    ProductModel.name.ilike(like),
                    ProductModel.description.ilike(like),
                    ProductModel.tagline.ilike(like),
                )
            )
        return query

    def get_product(self, product_id: int) -> ProductModel | None:
        try:
            return self.db.get(ProductModel, product_id)
        except SQLAlchemyError as e:
            logger.error(f"Loading product id {product_id} failed: {e}")
            raise StorageUnavailable("get_product", e, product_id=product_id) from e

    def get_products(self, product_ids: Iterable[int]) -> dict[int, ProductModel]:
        ids = list(set(product_ids))
        if not ids:
            return {}
        try:
            rows = self.db.execute(select(ProductModel).where(ProductModel.id.in_(ids))).scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Loading products {ids} failed: {e}")
            raise StorageUnavailable("get_products", e) from e
        return {p.id: p for p in rows}

    def list_products(
        self,
        flt: ProductFilter,
        sort: str | None,
        limit: int,
        offset: int,
    ) -> List[ProductModel]:
        query = self._apply_filter(select(ProductModel), flt)

        if sort == "alpha":
            query = query.order_by(ProductModel.name.asc(), ProductModel.id.asc())
        elif sort == "price_high":
            query = query.order_by(ProductModel.price.desc(), ProductModel.id.asc())
        else:
            # price_low i domyslne sortowanie
            query = query.order_by(ProductModel.price.asc(), ProductModel.id.asc())

        try:
            return self.db.execute(query.limit(limit).offset(offset)).scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Filtering products failed: {e}")
            raise StorageUnavailable("list_products", e) from e

    def count(self, flt: ProductFilter) -> int:
        query = self._apply_filter(select(func.count()).select_from(ProductModel), flt)
        try:
            return self.db.execute(query).scalar_one()
        except SQLAlchemyError as e:
            logger.error(f"Product count with filter failed: {e}")
            raise StorageUnavailable("count_products", e) from e

    def load_products(self) -> List[ProductModel]:
        try:
            return self.db.execute(select(ProductModel).order_by(ProductModel.id.asc())).scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Loading all products failed: {e}")
            raise StorageUnavailable("load_products", e) from e

    def list_categories(self) -> List[str]:
        try:
            rows = self.db.execute(
                select(ProductModel.category).distinct().order_by(ProductModel.category)
            ).scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Loading categories failed: {e}")
            raise StorageUnavailable("list_categories", e) from e
        return list(rows)

    # ---- admin ----

    def insert_product(self, product: ProductModel) -> ProductModel:
        try:
            self.db.add(product)
            self.db.commit()
            self.db.refresh(product)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Insert product failed: {e}")
            raise StorageUnavailable("insert_product", e) from e
        logger.info(f"Product {product.id} created")
        return product

    def save_product(self, product_id: int, values: dict) -> ProductModel:
        try:
            rowcount = self.db.execute(
                update(ProductModel).where(ProductModel.id == product_id).values(**values)
            ).rowcount
            if rowcount == 0:
                self.db.rollback()
                raise ProductNotFound(product_id)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to update product {product_id}: {e}")
            raise StorageUnavailable("save_product", e, product_id=product_id) from e

        logger.info(f"Product {product_id} updated")
        product = self.db.get(ProductModel, product_id)
        self.db.refresh(product)
        return product

    def delete_product(self, product_id: int) -> None:
        product = self.get_product(product_id)
        if product is None:
            raise ProductNotFound(product_id)
        try:
            self.db.delete(product)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Delete failed for product {product_id}: {e}")
            raise StorageUnavailable("delete_product", e, product_id=product_id) from e
        logger.info(f"Deleted product id {product_id}")

    # ---- inventory ----

    def decrement_inventory(self, product_id: int, amount: int) -> int:
        """
        Zmniejsza stan w biezacej transakcji (bez commita).
        Wiersz blokowany FOR UPDATE, a UPDATE i tak jest warunkowy (check-and-set),
        wiec dwa rownolegle checkouty nie zejda ponizej zera.
        Zwraca nowy stan.
        """
        current = self.db.execute(
            select(ProductModel.inventory).where(ProductModel.id == product_id).with_for_update()
        ).scalar_one_or_none()

        if current is None:
            raise ProductNotFound(product_id)

        if current < amount:
            logger.warning(
                f"Attempted to purchase more than inventory for product id {product_id}: "
                f"wanted {amount}, in stock {current}"
            )
            raise InsufficientInventory(product_id, amount, current)

        rowcount = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id, ProductModel.inventory >= amount)
            .values(inventory=ProductModel.inventory - amount)
            .execution_options(synchronize_session=False)
        ).rowcount

        if rowcount == 0:
            # ktos inny zdazyl zejsc ze stanem miedzy odczytem a update
            available = self.db.execute(
                select(ProductModel.inventory).where(ProductModel.id == product_id)
            ).scalar_one_or_none()
            logger.warning(f"Inventory of product id {product_id} changed during checkout, now {available}")
            raise InsufficientInventory(product_id, amount, available or 0)

        return current - amount

    def decrement_all(self, cart: List[CartItem]) -> None:
        """
        Wszystko albo nic: zmniejsza stany dla calego koszyka w jednej transakcji.
        Kolejnosc po product_id, zeby rownolegle transakcje blokowaly wiersze w tej samej kolejnosci.
        """
        try:
            for item in sorted(cart, key=lambda i: i.product_id):
                self.decrement_inventory(item.product_id, item.quantity)
            self.db.commit()
        except (InsufficientInventory, ProductNotFound):
            self.db.rollback()
            logger.error("Inventory update failed (rollback)")
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Inventory update failed (rollback): {e}")
            raise StorageUnavailable("decrement_inventory", e) from e
