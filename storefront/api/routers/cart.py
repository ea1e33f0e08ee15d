# storefront/api/routers/cart.py
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from storefront.api.deps import attach_session_cookie, error_response, get_lock_service, resolve_session
from storefront.data.database import get_db
from storefront.domain.errors import StorefrontError
from storefront.domain.schemas import CartItemIn, CartOut
from storefront.services.cart_service import CartService
from storefront.services.lock_service import LockService

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=CartOut)
def view_cart(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    ctx = resolve_session(request, db)
    svc = CartService(db, lock_service)
    try:
        cart = svc.view_cart(ctx)
    except StorefrontError as e:
        return error_response(e, ctx)
    attach_session_cookie(response, ctx)
    return cart


@router.post("/items", response_model=CartOut)
def update_item(
    payload: CartItemIn,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    """
    quantity to zmiana ilosci: >0 dodaje (limit magazyn / 99), <0 odejmuje, 0 usuwa pozycje.
    """
    ctx = resolve_session(request, db)
    svc = CartService(db, lock_service)
    try:
        svc.update_quantity(ctx, payload.product_id, payload.quantity)
        cart = svc.view_cart(ctx)
    except StorefrontError as e:
        return error_response(e, ctx)
    attach_session_cookie(response, ctx)
    return cart


@router.delete("/items/{product_id}", response_model=CartOut)
def remove_item(
    product_id: int,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    ctx = resolve_session(request, db)
    svc = CartService(db, lock_service)
    try:
        svc.update_quantity(ctx, product_id, 0)
        cart = svc.view_cart(ctx)
    except StorefrontError as e:
        return error_response(e, ctx)
    attach_session_cookie(response, ctx)
    return cart
