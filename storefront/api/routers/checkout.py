# storefront/api/routers/checkout.py
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from storefront.api.deps import (
    attach_session_cookie,
    error_response,
    get_lock_service,
    get_payment_client,
    resolve_session,
)
from storefront.data.database import get_db
from storefront.domain.errors import StorefrontError
from storefront.domain.price import to_usd_string
from storefront.domain.schemas import CheckoutIn, CheckoutOut
from storefront.services.checkout_service import CheckoutService
from storefront.services.lock_service import LockService
from storefront.services.payment_client import PaymentClient

router = APIRouter(tags=["checkout"])


@router.post("/checkout", response_model=CheckoutOut)
def checkout(
    payload: CheckoutIn,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    payment_client: PaymentClient = Depends(get_payment_client),
    lock_service: LockService = Depends(get_lock_service),
):
    """
    Platnosc, potem zmniejszenie stanow wszystko-albo-nic i czyszczenie koszyka.
    Blad platnosci zostawia koszyk i magazyn bez zmian.
    """
    ctx = resolve_session(request, db)
    svc = CheckoutService(db, payment_client, lock_service)
    try:
        result = svc.checkout(ctx, payload.payment_token)
    except StorefrontError as e:
        return error_response(e, ctx)

    attach_session_cookie(response, ctx)
    return CheckoutOut(
        state=result.state.value,
        total_cents=result.total_cents,
        total_display=to_usd_string(result.total_cents),
        items=result.items,
    )
