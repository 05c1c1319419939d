from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.catalog.base import CatalogStore
from app.catalog.factory import get_catalog
from app.config import get_settings
from app.models.base import get_db
from app.models.order import Order, OrderItem
from app.schemas.order import OrderConfirmationOut, OrderCreate, OrderInfo, OrderItemOut, OrderOut
from app.services.order_service import OrderService
from app.utils.order_message import order_confirmation_link, order_confirmation_message
from app.utils.session import get_session_id


router = APIRouter()


def get_order_service(db: Session = Depends(get_db), catalog: CatalogStore = Depends(get_catalog)) -> OrderService:
    return OrderService(db, catalog, payment_method=get_settings().ORDER_PAYMENT_METHOD)


def map_order_to_out(order: Order, items: List[OrderItem]) -> OrderOut:
    return OrderOut(
        order=OrderInfo.model_validate(order),
        items=[OrderItemOut.model_validate(i) for i in items],
    )


# 13. Place Order (checkout the session's active cart)
@router.post("", response_model=OrderOut)
def create_order(
    payload: OrderCreate,
    service: OrderService = Depends(get_order_service),
    session_id: str = Depends(get_session_id),
):
    order, items = service.place_order(session_id, payload)
    return map_order_to_out(order, items)


# 14. Order History
@router.get("", response_model=List[OrderInfo])
def list_orders(service: OrderService = Depends(get_order_service), session_id: str = Depends(get_session_id)):
    return service.list_orders(session_id)


# 15. Order Detail
@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: str,
    service: OrderService = Depends(get_order_service),
    session_id: str = Depends(get_session_id),
):
    order = service.get_order(session_id, order_id)
    return map_order_to_out(order, service.get_order_items(order.id))


# 16. Confirmation hand-off (message text + wa.me link)
@router.get("/{order_id}/confirmation", response_model=OrderConfirmationOut)
def get_order_confirmation(
    order_id: str,
    service: OrderService = Depends(get_order_service),
    session_id: str = Depends(get_session_id),
):
    settings = get_settings()
    order = service.get_order(session_id, order_id)
    items = service.get_order_items(order.id)
    return OrderConfirmationOut(
        message=order_confirmation_message(order, items, settings.CURRENCY),
        url=order_confirmation_link(order, items, settings.WHATSAPP_BUSINESS_NUMBER, settings.CURRENCY),
    )
