from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.errors import NotFoundError
from app.models.base import get_db
from app.models.cart import Cart
from app.schemas.cart import CartInfo, CartItemIn, CartItemOut, CartItemUpdate, CartOut, SuccessOut
from app.services.cart_service import CartService, item_count, total_amount
from app.utils.session import get_session_id


router = APIRouter()


def _serialize_cart(service: CartService, cart: Cart) -> CartOut:
    items = service.get_items(cart.id)
    return CartOut(
        cart=CartInfo.model_validate(cart),
        items=[CartItemOut.model_validate(i) for i in items],
        item_count=item_count(items),
        total_amount=total_amount(items),
    )


def _require_active_cart(service: CartService, session_id: str, missing: str) -> Cart:
    cart = service.get_active_cart(session_id)
    if not cart:
        raise NotFoundError(missing)
    return cart


# 8. Get Cart
@router.get("", response_model=CartOut)
def get_cart(db: Session = Depends(get_db), session_id: str = Depends(get_session_id)):
    service = CartService(db)
    cart = service.get_or_create_active_cart(session_id)
    return _serialize_cart(service, cart)


# 9. Add Cart Item (merges into an existing line for the same product)
@router.post("/items", response_model=CartItemOut)
def add_cart_item(
    payload: CartItemIn,
    db: Session = Depends(get_db),
    session_id: str = Depends(get_session_id),
):
    service = CartService(db)
    cart = service.get_or_create_active_cart(session_id)
    return service.add_item(cart.id, payload.product_id, payload.quantity, payload.unit_price)


# 10. Update Cart Item Quantity
@router.patch("/items/{item_id}", response_model=CartItemOut)
def update_cart_item(
    item_id: str,
    payload: CartItemUpdate,
    db: Session = Depends(get_db),
    session_id: str = Depends(get_session_id),
):
    service = CartService(db)
    cart = _require_active_cart(service, session_id, "Cart item not found")
    return service.update_item_quantity(cart.id, item_id, payload.quantity)


# 11. Remove Cart Item
@router.delete("/items/{item_id}", response_model=SuccessOut)
def remove_cart_item(item_id: str, db: Session = Depends(get_db), session_id: str = Depends(get_session_id)):
    service = CartService(db)
    cart = _require_active_cart(service, session_id, "Cart item not found")
    if not service.remove_item(cart.id, item_id):
        raise NotFoundError("Cart item not found")
    return SuccessOut()


# 12. Clear Cart
@router.delete("", response_model=SuccessOut)
def clear_cart(db: Session = Depends(get_db), session_id: str = Depends(get_session_id)):
    service = CartService(db)
    cart = _require_active_cart(service, session_id, "Cart not found")
    service.clear_cart(cart.id)
    return SuccessOut()
