# storefront/services/payment.py

"""
결제 흐름: 결제 생성 → 승인 → (부분) 환불, Stripe 웹훅.

게이트웨이 호출과 DB 기록은 순서대로 진행하며 보상 롤백은 없다.
"""

from sqlalchemy.future import select
from fastapi import Request

from storefront.errors import AppError, ErrorCode, not_found
from storefront.models.order import Order as OrderModel
from storefront.models.payment import Payment as PaymentModel, Refund as RefundModel
from storefront.models.product import Product
from storefront.schemas.payment import PaymentCancel, PaymentConfirm, PaymentCreate
from storefront.services.order import can_transition, read_order_service, transition_order
from storefront.services.payment_gateways import PaymentGateway, PaymentGatewayError


def get_gateway(request: Request, provider: str) -> PaymentGateway:
    gateway = request.app.state.gateways.get(provider)
    if gateway is None:
        raise AppError(ErrorCode.BAD_REQUEST, f"사용할 수 없는 결제 수단입니다: {provider}")
    return gateway


def gateway_error_to_app_error(e: PaymentGatewayError) -> AppError:
    """4xx 는 결제 거절, 그 외(네트워크, 5xx) 는 게이트웨이 장애."""
    code = ErrorCode.PAYMENT_FAILED if e.status and 400 <= e.status < 500 else ErrorCode.GATEWAY_ERROR
    return AppError(code, e.message, {"gatewayCode": e.code})


def ensure_order_access(order: OrderModel, user) -> None:
    if not user.is_admin and order.user_id != user.id:
        raise AppError(ErrorCode.FORBIDDEN, "다른 사용자의 주문입니다.")


def extract_payment_id(provider: str, payload: dict) -> str | None:
    if provider == "toss":
        return payload.get("paymentKey")
    return payload.get("id")


async def _latest_payment(db, order_id: int, provider: str | None = None) -> PaymentModel | None:
    stmt = select(PaymentModel).where(PaymentModel.order_id == order_id)
    if provider:
        stmt = stmt.where(PaymentModel.provider == provider)
    result = await db.execute(stmt.order_by(PaymentModel.id.desc()).limit(1))
    return result.scalar_one_or_none()


async def _mark_paid(request: Request, order: OrderModel, payment: PaymentModel) -> None:
    """결제 완료 처리: 주문 paid, 재고 차감, 이벤트 전송."""
    db = request.state.db
    log = request.app.state.log
    events = request.app.state.events

    payment.status = "paid"
    transition_order(order, "paid")
    order.payment_status = "paid"

    product_ids = [item.product_id for item in order.items if item.product_id is not None]
    result = await db.execute(select(Product).where(Product.id.in_(product_ids)))
    products = {p.id: p for p in result.scalars().all()}
    for item in order.items:
        product = products.get(item.product_id)
        if product is None:
            continue
        if product.stock < item.quantity:
            await log.log_warning("payment", "재고보다 많은 수량이 결제됨", {
                "order_id": order.id, "product_id": product.id, "stock": product.stock, "quantity": item.quantity
            })
        product.stock = max(product.stock - item.quantity, 0)
    await db.commit()

    events.broadcast("order-update", {"orderId": order.id, "status": order.status, "paymentStatus": "paid"})
    for product in products.values():
        events.broadcast("inventory-update", {"productId": product.id, "stock": product.stock})
    await log.log_info("payment", "결제 완료", {"order_id": order.id, "payment_id": payment.id, "amount": payment.amount})


# ────────────── 결제 생성 ──────────────
async def create_payment_service(payment: PaymentCreate, user, request: Request) -> dict:
    """
    결제 생성. 금액은 항상 저장된 주문 금액을 쓴다.
    """
    db = request.state.db
    log = request.app.state.log

    order = await read_order_service(payment.order_id, request)
    ensure_order_access(order, user)
    if order.status != "pending":
        raise AppError(ErrorCode.BUSINESS_RULE, f"'{order.status}' 상태의 주문은 결제할 수 없습니다.")
    gateway = get_gateway(request, payment.provider)

    order_name = order.items[0].product_name if order.items else order.order_number
    if len(order.items) > 1:
        order_name = f"{order_name} 외 {len(order.items) - 1}건"

    try:
        response = await gateway.create_payment(
            order.order_number,
            order.total_amount,
            order_name,
            success_url=payment.success_url,
            fail_url=payment.fail_url,
        )
    except PaymentGatewayError as e:
        await log.log_error("payment", "결제 생성 실패", {"order_id": order.id, "code": e.code, "message": e.message})
        raise gateway_error_to_app_error(e) from e

    db_payment = PaymentModel(
        order_id=order.id,
        provider=payment.provider,
        provider_payment_id=extract_payment_id(payment.provider, response),
        amount=order.total_amount,
        status="pending",
        raw=response,
    )
    db.add(db_payment)
    await db.commit()
    await db.refresh(db_payment)

    await log.log_info("payment", "결제 생성", {"order_id": order.id, "provider": payment.provider})
    return {
        "success": True,
        "paymentId": db_payment.id,
        "orderNumber": order.order_number,
        "amount": order.total_amount,
        "provider": payment.provider,
        "checkoutUrl": (response.get("checkout") or {}).get("url") if payment.provider == "toss" else None,
        "clientSecret": response.get("client_secret"),
    }


# ────────────── 결제 승인 ──────────────
async def confirm_payment_service(confirm: PaymentConfirm, user, request: Request) -> dict:
    """
    결제 승인. 클라이언트 금액이 주문 금액과 다르면 게이트웨이를 호출하지 않고 거절한다.
    """
    db = request.state.db
    log = request.app.state.log

    order = await read_order_service(confirm.order_id, request)
    ensure_order_access(order, user)
    if confirm.amount != order.total_amount:
        await log.log_warning("payment", "결제 금액 불일치", {
            "order_id": order.id, "expected": order.total_amount, "received": confirm.amount
        })
        raise AppError(ErrorCode.BAD_REQUEST, "결제 금액이 주문 금액과 일치하지 않습니다.")
    if order.status != "pending":
        raise AppError(ErrorCode.BUSINESS_RULE, f"'{order.status}' 상태의 주문은 승인할 수 없습니다.")
    gateway = get_gateway(request, confirm.provider)

    db_payment = await _latest_payment(db, order.id, confirm.provider)
    if db_payment is None or db_payment.status != "pending":
        db_payment = PaymentModel(order_id=order.id, provider=confirm.provider, amount=order.total_amount)
        db.add(db_payment)
    db_payment.provider_payment_id = confirm.payment_key

    try:
        response = await gateway.confirm_payment(confirm.payment_key, order.order_number, order.total_amount)
    except PaymentGatewayError as e:
        db_payment.status = "failed"
        db_payment.raw = e.raw if isinstance(e.raw, dict) else {"message": e.message, "code": e.code}
        await db.commit()
        await log.log_error("payment", "결제 승인 실패", {"order_id": order.id, "code": e.code, "message": e.message})
        raise gateway_error_to_app_error(e) from e

    db_payment.raw = response
    if not gateway.is_paid(response):
        await db.commit()
        await log.log_warning("payment", "결제 미완료 상태", {"order_id": order.id, "status": response.get("status")})
        return {"success": False, "paymentId": db_payment.id, "status": response.get("status"), "orderId": order.id}

    await _mark_paid(request, order, db_payment)
    return {"success": True, "paymentId": db_payment.id, "status": "paid", "orderId": order.id}


# ────────────── 환불 ──────────────
async def read_payment_service(id: int, request: Request) -> PaymentModel:
    db = request.state.db

    result = await db.execute(select(PaymentModel).where(PaymentModel.id == id))
    db_payment = result.scalar_one_or_none()
    if db_payment is None:
        raise not_found("결제 내역을 찾을 수 없습니다.")
    return db_payment


async def cancel_payment_service(id: int, cancel: PaymentCancel, request: Request) -> PaymentModel:
    """
    결제 취소/부분 환불. 환불 누계가 결제 금액에 도달하면 결제와 주문을 refunded 로 바꾼다.
    """
    db = request.state.db
    log = request.app.state.log

    db_payment = await read_payment_service(id, request)
    if db_payment.status != "paid":
        raise AppError(ErrorCode.BUSINESS_RULE, f"'{db_payment.status}' 상태의 결제는 취소할 수 없습니다.")

    remaining = db_payment.amount - db_payment.refunded_amount
    amount = cancel.amount if cancel.amount is not None else remaining
    if amount > remaining:
        raise AppError(ErrorCode.BAD_REQUEST, f"환불 가능 금액을 초과했습니다. (잔액 {remaining}원)")

    order = await db.get(OrderModel, db_payment.order_id)
    full_refund = amount == remaining
    if full_refund and not can_transition(order.status, "refunded"):
        raise AppError(ErrorCode.BUSINESS_RULE, f"'{order.status}' 상태의 주문은 전액 환불할 수 없습니다.")

    gateway = get_gateway(request, db_payment.provider)
    try:
        response = await gateway.cancel_payment(
            db_payment.provider_payment_id, cancel.reason, None if full_refund and cancel.amount is None else amount
        )
    except PaymentGatewayError as e:
        await log.log_error("payment", "결제 취소 실패", {"payment_id": id, "code": e.code, "message": e.message})
        raise gateway_error_to_app_error(e) from e

    db_payment.refunds.append(RefundModel(amount=amount, reason=cancel.reason))
    db_payment.raw = response
    if db_payment.refunded_amount >= db_payment.amount:
        db_payment.status = "refunded"
        transition_order(order, "refunded")
        order.payment_status = "refunded"
    else:
        order.payment_status = "partially_refunded"
    await db.commit()
    await db.refresh(db_payment)

    request.app.state.events.broadcast("order-update", {
        "orderId": order.id, "status": order.status, "paymentStatus": order.payment_status
    })
    await log.log_info("payment", "환불 처리", {"payment_id": id, "amount": amount, "refunded": db_payment.refunded_amount})
    return db_payment


# ────────────── Stripe 웹훅 ──────────────
async def handle_stripe_webhook_service(payload: bytes, signature: str, request: Request) -> dict:
    db = request.state.db
    log = request.app.state.log

    gateway = get_gateway(request, "stripe")
    try:
        event = gateway.verify_webhook_signature(payload, signature)
    except PaymentGatewayError as e:
        await log.log_warning("payment", "웹훅 서명 검증 실패", {"code": e.code})
        raise AppError(ErrorCode.BAD_REQUEST, e.message) from e

    event_type = event.get("type")
    intent = (event.get("data") or {}).get("object") or {}
    result = await db.execute(
        select(PaymentModel).where(PaymentModel.provider == "stripe", PaymentModel.provider_payment_id == intent.get("id"))
    )
    db_payment = result.scalar_one_or_none()
    if db_payment is None:
        await log.log_warning("payment", "웹훅 결제 없음", {"type": event_type, "intent": intent.get("id")})
        return {"received": True, "handled": False}

    if event_type == "payment_intent.succeeded" and db_payment.status == "pending":
        db_payment.raw = intent
        order = await db.get(OrderModel, db_payment.order_id)
        if order.status == "pending":
            await _mark_paid(request, order, db_payment)
        else:
            db_payment.status = "paid"
            await db.commit()
    elif event_type == "payment_intent.payment_failed" and db_payment.status == "pending":
        db_payment.status = "failed"
        db_payment.raw = intent
        await db.commit()
    else:
        return {"received": True, "handled": False}

    await log.log_info("payment", "웹훅 처리", {"type": event_type, "payment_id": db_payment.id})
    return {"received": True, "handled": True}
