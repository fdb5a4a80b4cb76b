# medcart/api/routers/carts.py
from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import ValidationError

from medcart.api.deps import get_catalog, get_product_client, get_store
from medcart.domain.commands import parse_command
from medcart.domain.errors import (
    CheckoutNotAllowedError,
    ProductLookupError,
    PromotionNotApplicableError,
)
from medcart.domain.models import CartLineItem, CartSummary
from medcart.domain.schemas import CartOut, CheckoutOut, ProductIn
from medcart.repos.blob_store import BlobStore
from medcart.repos.cart_repo import CartRepo
from medcart.services.cart_service import CartService
from medcart.services.checkout_service import CheckoutService
from medcart.services.product_client import ProductClient
from medcart.services.promotion_catalog import PromotionCatalog

router = APIRouter(prefix="/carts", tags=["carts"])


def get_service(
    session_id: str,
    store: BlobStore = Depends(get_store),
    catalog: PromotionCatalog = Depends(get_catalog),
    product_client: ProductClient = Depends(get_product_client),
) -> CartService:
    return CartService(
        session_id=session_id,
        repo=CartRepo(store, session_id),
        catalog=catalog,
        product_client=product_client,
    )


def to_out(svc: CartService) -> CartOut:
    return CartOut(
        session_id=svc.session_id,
        state=svc.state,
        summary=svc.get_summary(),
        item_count=svc.get_item_count(),
        can_checkout=svc.can_checkout(),
    )


@router.get("/{session_id}", response_model=CartOut)
def get_cart(svc: CartService = Depends(get_service)):
    return to_out(svc)


@router.get("/{session_id}/summary", response_model=CartSummary)
def get_summary(svc: CartService = Depends(get_service)):
    return svc.get_summary()


@router.get("/{session_id}/items/{item_id}", response_model=CartLineItem)
def get_item(item_id: str, svc: CartService = Depends(get_service)):
    item = svc.get_item_by_id(item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not in cart")
    return item


@router.post("/{session_id}/commands", response_model=CartOut)
def issue_command(
    payload: dict = Body(...),
    svc: CartService = Depends(get_service),
):
    #{"type": "ADD_ITEM", "item": {...}}
    try:
        svc.issue_command(parse_command(payload))
    except PromotionNotApplicableError as e:
        raise HTTPException(status_code=422, detail={"code": e.code, "result": e.reason})
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return to_out(svc)


@router.post("/{session_id}/items", response_model=CartOut)
def add_product(payload: ProductIn, svc: CartService = Depends(get_service)):
    overrides = payload.model_dump(
        include={"shipping_method", "prescriber_id", "pharmacy_id"},
        exclude_none=True,
    )
    try:
        svc.add_product(
            product_id=payload.product_id,
            dosage=payload.dosage,
            quantity=payload.quantity,
            **overrides,
        )
    except ProductLookupError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return to_out(svc)


@router.post("/{session_id}/checkout", response_model=CheckoutOut, status_code=202)
def checkout(svc: CartService = Depends(get_service)):
    try:
        handoff_id = CheckoutService().submit(svc)
    except CheckoutNotAllowedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return CheckoutOut(handoff_id=handoff_id, summary=svc.get_summary())
