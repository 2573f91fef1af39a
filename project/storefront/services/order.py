# storefront/services/order.py

import uuid
from datetime import datetime

from sqlalchemy.future import select
from fastapi import Request

from storefront.errors import AppError, ErrorCode, not_found
from storefront.models.cart import CartItem
from storefront.models.order import Order as OrderModel, OrderItem as OrderItemModel
from storefront.models.product import Product
from storefront.schemas.order import OrderCreate
from storefront.services.cart import clear_cart_service

# 주문 상태 전이표. 상태 변경은 모두 이 표를 거친다.
ORDER_TRANSITIONS = {
    "pending": {"paid", "cancelled"},
    "paid": {"preparing", "cancelled", "refunded"},
    "preparing": {"shipped", "cancelled"},
    "shipped": {"delivered"},
    "delivered": set(),
    "cancelled": set(),
    "refunded": set(),
}


def can_transition(current: str, new: str) -> bool:
    return new in ORDER_TRANSITIONS.get(current, set())


def transition_order(order: OrderModel, new_status: str) -> None:
    """허용되지 않은 전이는 BUSINESS_RULE 에러."""
    if new_status not in ORDER_TRANSITIONS:
        raise AppError(ErrorCode.BAD_REQUEST, f"알 수 없는 주문 상태입니다: {new_status}")
    if not can_transition(order.status, new_status):
        raise AppError(
            ErrorCode.BUSINESS_RULE,
            f"'{order.status}' 상태의 주문은 '{new_status}' 로 변경할 수 없습니다.",
        )
    order.status = new_status


def generate_order_number() -> str:
    return f"ORD-{datetime.now():%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"


async def create_order_service(order: OrderCreate, user_id: int, request: Request) -> OrderModel:
    """
    주문 생성. 가격은 항상 카탈로그 기준으로 계산한다.
    items 가 없으면 장바구니로 주문하고, 성공하면 장바구니를 비운다.
    재고 차감은 결제 승인 시점에 한다.
    """
    db = request.state.db
    log = request.app.state.log

    from_cart = not order.items
    if from_cart:
        result = await db.execute(select(CartItem).where(CartItem.user_id == user_id))
        requested = [(item.product_id, item.quantity) for item in result.scalars().all()]
        if not requested:
            raise AppError(ErrorCode.BAD_REQUEST, "장바구니가 비어 있습니다.")
    else:
        requested = [(item.product_id, item.quantity) for item in order.items]

    quantities: dict[int, int] = {}
    for product_id, quantity in requested:
        quantities[product_id] = quantities.get(product_id, 0) + quantity

    result = await db.execute(select(Product).where(Product.id.in_(quantities.keys())))
    products = {p.id: p for p in result.scalars().all()}

    items = []
    for product_id, quantity in quantities.items():
        product = products.get(product_id)
        if product is None or not product.is_active:
            raise AppError(ErrorCode.BAD_REQUEST, f"주문할 수 없는 상품입니다: {product_id}")
        if product.stock < quantity:
            raise AppError(ErrorCode.CONFLICT, f"'{product.name}' 재고가 부족합니다. (남은 수량 {product.stock}개)")
        items.append(OrderItemModel(
            product_id=product.id,
            product_name=product.name,
            unit_price=product.price,
            quantity=quantity,
        ))

    db_order = OrderModel(
        order_number=generate_order_number(),
        user_id=user_id,
        status="pending",
        payment_status="unpaid",
        total_amount=sum(i.unit_price * i.quantity for i in items),
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
        shipping_address=order.shipping_address,
        memo=order.memo,
        items=items,
    )
    db.add(db_order)
    if from_cart:
        await clear_cart_service(user_id, request, commit=False)
    await db.commit()
    await db.refresh(db_order)

    request.app.state.events.broadcast("order-update", {
        "orderId": db_order.id, "status": db_order.status, "action": "created"
    })
    await log.log_info("order", "주문 생성", {"id": db_order.id, "total": db_order.total_amount})
    return db_order


async def read_orders_service(
    request: Request, user_id: int | None = None, status: str | None = None, skip: int = 0, limit: int = 100
) -> list[OrderModel]:
    """
    주문 목록. user_id 가 있으면 해당 사용자 주문만.
    """
    db = request.state.db
    log = request.app.state.log

    stmt = select(OrderModel)
    if user_id is not None:
        stmt = stmt.where(OrderModel.user_id == user_id)
    if status:
        stmt = stmt.where(OrderModel.status == status)
    result = await db.execute(stmt.order_by(OrderModel.id.desc()).offset(skip).limit(limit))
    orders = result.scalars().all()

    await log.log_info("order", f"{len(orders)}건 주문 조회")
    return orders


async def read_order_service(id: int, request: Request) -> OrderModel:
    db = request.state.db
    log = request.app.state.log

    result = await db.execute(select(OrderModel).where(OrderModel.id == id))
    db_order = result.scalar_one_or_none()
    if db_order is None:
        await log.log_error("order", "주문 없음", {"id": id})
        raise not_found("주문을 찾을 수 없습니다.")
    return db_order


async def update_order_status_service(id: int, new_status: str, request: Request) -> OrderModel:
    db = request.state.db
    log = request.app.state.log

    db_order = await read_order_service(id, request)
    previous = db_order.status
    transition_order(db_order, new_status)
    await db.commit()
    await db.refresh(db_order)

    request.app.state.events.broadcast("order-update", {
        "orderId": db_order.id, "status": db_order.status, "previous": previous
    })
    await log.log_info("order", "주문 상태 변경", {"id": id, "from": previous, "to": new_status})
    return db_order
