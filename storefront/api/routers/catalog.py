# storefront/api/routers/catalog.py
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.orm import Session

from storefront.api.deps import attach_session_cookie, error_response, get_category_cache, resolve_session
from storefront.data.database import get_db
from storefront.domain.cart import item_count
from storefront.domain.errors import ProductNotFound, StorefrontError
from storefront.domain.schemas import IndexOut, ProductOut, ProductPage
from storefront.repos.product_repo import ProductFilter, ProductRepo
from storefront.services.category_cache import CategoryCache
from storefront.utils.settings import PRODUCTS_PER_PAGE, SITE_NAME
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["catalog"])


def build_query_string(params: dict) -> str:
    """{category: "Fruit", search: "Apple"} -> "category=Fruit&search=Apple" (puste pomijane)"""
    return urlencode({k: v.strip() for k, v in params.items() if v and v.strip()})


@router.get("/", response_model=IndexOut)
def index(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    cache: CategoryCache = Depends(get_category_cache),
):
    ctx = resolve_session(request, db)
    attach_session_cookie(response, ctx)
    return IndexOut(
        site_name=SITE_NAME,
        categories=list(cache.read()),
        cart_item_count=item_count(ctx.cart),
    )


@router.get("/products", response_model=ProductPage)
def browse_products(
    request: Request,
    response: Response,
    page: int = Query(1),
    category: str | None = Query(None),
    tag: str | None = Query(None),
    search: str | None = Query(None),
    sort: str | None = Query(None),
    db: Session = Depends(get_db),
    cache: CategoryCache = Depends(get_category_cache),
):
    ctx = resolve_session(request, db)

    page = max(page, 1)
    offset = (page - 1) * PRODUCTS_PER_PAGE
    logger.debug(f"browse_products: page={page} category={category} tag={tag} search={search} sort={sort}")

    repo = ProductRepo(db)
    flt = ProductFilter(category=category, tag=tag, search=search)
    try:
        total_items = repo.count(flt)
        products = repo.list_products(flt, sort, PRODUCTS_PER_PAGE, offset)
    except StorefrontError as e:
        return error_response(e, ctx)

    total_pages = max(1, -(-total_items // PRODUCTS_PER_PAGE))

    attach_session_cookie(response, ctx)
    return ProductPage(
        products=[ProductOut.model_validate(p) for p in products],
        categories=list(cache.read()),
        current_page=page,
        total_pages=total_pages,
        total_items=total_items,
        filter_query=build_query_string(
            {"category": category, "tag": tag, "search": search, "sort": sort}
        ),
    )


@router.get("/products/{product_id}", response_model=ProductOut)
def product_detail(
    product_id: int,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    ctx = resolve_session(request, db)
    try:
        product = ProductRepo(db).get_product(product_id)
        if product is None:
            logger.warning(f"Product not found: id {product_id}")
            raise ProductNotFound(product_id)
    except StorefrontError as e:
        return error_response(e, ctx)

    attach_session_cookie(response, ctx)
    return ProductOut.model_validate(product)
