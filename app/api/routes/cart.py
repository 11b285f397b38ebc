from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from app.api.errors import api_error
from app.api.routes.auth_guard import AuthUser, authenticate_token, parse_resource_id
from app.api.schemas import CartAddRequest, CartRemoveRequest, CartUpdateRequest, PromoCodeRequest
from app.commerce.cart.errors import (
    CartError,
    CartItemNotFoundError,
    CartNotFoundError,
    InvalidPromoCodeError,
)
from app.commerce.cart.service import CartService
from app.commerce.cart.store import get_cart_store
from app.db.session import SessionLocal

router = APIRouter(tags=["cart"])


def _cart_http_error(exc: CartError) -> HTTPException:
    if isinstance(exc, CartNotFoundError):
        return api_error(404, "E_CART_NOT_FOUND", "Cart not found")
    if isinstance(exc, CartItemNotFoundError):
        return api_error(404, "E_NOT_FOUND", "Item not found")
    if isinstance(exc, InvalidPromoCodeError):
        return api_error(400, "E_PROMO_INVALID", "Invalid promo code")
    return api_error(400, "E_CART_INVALID", "Invalid cart item")


@router.get("/api/cart")
async def get_cart(user: AuthUser = Depends(authenticate_token)) -> dict[str, Any]:
    cart = await CartService.get_cart(get_cart_store(), user_id=user.id)
    return cart.to_dict()


@router.post("/api/cart/add")
async def add_to_cart(payload: CartAddRequest, user: AuthUser = Depends(authenticate_token)) -> dict[str, Any]:
    item_id = parse_resource_id(payload.id, not_found_message="Item not found")
    try:
        async with SessionLocal.begin() as session:
            cart = await CartService.add_item(
                session,
                get_cart_store(),
                user_id=user.id,
                item_type=payload.type,
                item_id=item_id,
                quantity=payload.quantity,
            )
    except CartError as exc:
        raise _cart_http_error(exc) from exc
    return cart.to_dict()


@router.patch("/api/cart/update")
async def update_cart_item(payload: CartUpdateRequest, user: AuthUser = Depends(authenticate_token)) -> dict[str, Any]:
    try:
        cart = await CartService.update_item(
            get_cart_store(),
            user_id=user.id,
            line_id=payload.item_id,
            quantity=payload.quantity,
        )
    except CartError as exc:
        raise _cart_http_error(exc) from exc
    return cart.to_dict()


@router.delete("/api/cart/remove")
async def remove_cart_item(
    payload: CartRemoveRequest = Body(...),
    user: AuthUser = Depends(authenticate_token),
) -> dict[str, Any]:
    try:
        cart = await CartService.remove_item(get_cart_store(), user_id=user.id, line_id=payload.item_id)
    except CartError as exc:
        raise _cart_http_error(exc) from exc
    return cart.to_dict()


@router.post("/api/cart/promo")
async def apply_promo_code(payload: PromoCodeRequest, user: AuthUser = Depends(authenticate_token)) -> dict[str, Any]:
    try:
        cart = await CartService.apply_promo(get_cart_store(), user_id=user.id, code=payload.code)
    except CartError as exc:
        raise _cart_http_error(exc) from exc
    return {"message": "Promo code applied", "cart": cart.to_dict()}
