# storefront/api/routers/admin.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import error_response, get_category_cache
from storefront.data.database import get_db
from storefront.data.models.product import ProductModel
from storefront.domain.errors import StorefrontError
from storefront.domain.price import from_dollars
from storefront.domain.schemas import ProductIn, ProductOut
from storefront.repos.product_repo import ProductRepo
from storefront.services.category_cache import CategoryCache
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/admin/products", tags=["admin"])


def _columns(payload: ProductIn) -> dict:
    return {
        "name": payload.name,
        "price": from_dollars(payload.price),
        "inventory": payload.inventory,
        "category": payload.category or "Uncategorized",
        "tags": ",".join(payload.tags) or None,
        "keywords": ",".join(payload.keywords) or None,
        "thumbnail_url": payload.thumbnail_url,
        "gallery_urls": ",".join(payload.gallery_urls) or None,
        "tagline": payload.tagline,
        "description": payload.description,
        "discount_percent": payload.discount_percent,
    }


@router.get("", response_model=List[ProductOut])
def list_products(db: Session = Depends(get_db)):
    try:
        products = ProductRepo(db).load_products()
    except StorefrontError as e:
        return error_response(e)
    return [ProductOut.model_validate(p) for p in products]


@router.post("", response_model=ProductOut, status_code=201)
def add_product(
    payload: ProductIn,
    db: Session = Depends(get_db),
    cache: CategoryCache = Depends(get_category_cache),
):
    logger.info(f"Received add product data: {payload.name}")
    repo = ProductRepo(db)
    try:
        product = repo.insert_product(ProductModel(**_columns(payload)))
        cache.refresh(repo)
    except StorefrontError as e:
        return error_response(e)
    return ProductOut.model_validate(product)


@router.put("/{product_id}", response_model=ProductOut)
def edit_product(
    product_id: int,
    payload: ProductIn,
    db: Session = Depends(get_db),
    cache: CategoryCache = Depends(get_category_cache),
):
    repo = ProductRepo(db)
    try:
        product = repo.save_product(product_id, _columns(payload))
        cache.refresh(repo)
    except StorefrontError as e:
        return error_response(e)
    return ProductOut.model_validate(product)


@router.delete("/{product_id}", status_code=204)
def remove_product(
    product_id: int,
    db: Session = Depends(get_db),
    cache: CategoryCache = Depends(get_category_cache),
):
    logger.info(f"Received request to delete product with ID: {product_id}")
    repo = ProductRepo(db)
    try:
        repo.delete_product(product_id)
        cache.refresh(repo)
    except StorefrontError as e:
        return error_response(e)
