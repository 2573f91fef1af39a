# storefront/routes/payment.py

from fastapi import APIRouter, Depends, Header, Request, status

from storefront.routes.auth import get_current_user, require_admin
from storefront.schemas.payment import Payment, PaymentCancel, PaymentConfirm, PaymentCreate
from storefront.services.order import read_order_service
from storefront.services.payment import (
    cancel_payment_service,
    confirm_payment_service,
    create_payment_service,
    ensure_order_access,
    handle_stripe_webhook_service,
    read_payment_service,
)

router = APIRouter()


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="결제 생성",
    responses={
        201: {"description": "결제 생성. Toss 는 checkoutUrl, Stripe 는 clientSecret 을 돌려준다."},
        400: {"description": "결제할 수 없는 주문 또는 결제 수단"},
        402: {"description": "게이트웨이가 거절"},
        502: {"description": "게이트웨이 장애"},
    },
)
async def create_payment(body: PaymentCreate, request: Request, current_user=Depends(get_current_user)):
    try:
        return await create_payment_service(body, current_user, request)
    except Exception as e:
        await request.app.state.log.log_error("payment", f"결제 생성 오류: {e}", {"order_id": body.order_id})
        raise


@router.post(
    "/confirm",
    summary="결제 승인",
    responses={
        200: {"description": "승인 완료"},
        400: {"description": "금액 불일치 등"},
        402: {"description": "게이트웨이가 거절"},
        502: {"description": "게이트웨이 장애"},
    },
)
async def confirm_payment(body: PaymentConfirm, request: Request, current_user=Depends(get_current_user)):
    """
    결제 승인. 요청 금액은 서버에 저장된 주문 금액과 같아야 한다.
    """
    try:
        return await confirm_payment_service(body, current_user, request)
    except Exception as e:
        await request.app.state.log.log_error("payment", f"결제 승인 오류: {e}", {"order_id": body.order_id})
        raise


@router.post("/webhooks/stripe", summary="Stripe 웹훅", responses={400: {"description": "서명 검증 실패"}})
async def stripe_webhook(request: Request, stripe_signature: str = Header("", alias="Stripe-Signature")):
    payload = await request.body()
    return await handle_stripe_webhook_service(payload, stripe_signature, request)


@router.get("/{id}", response_model=Payment, summary="결제 조회", responses={404: {"description": "결제 없음"}})
async def read_payment(id: int, request: Request, current_user=Depends(get_current_user)):
    payment = await read_payment_service(id, request)
    order = await read_order_service(payment.order_id, request)
    ensure_order_access(order, current_user)
    return payment


@router.post(
    "/{id}/cancel",
    response_model=Payment,
    summary="결제 취소/환불 (관리자)",
    responses={400: {"description": "취소할 수 없는 결제 또는 금액 초과"}},
)
async def cancel_payment(id: int, body: PaymentCancel, request: Request, _=Depends(require_admin)):
    try:
        return await cancel_payment_service(id, body, request)
    except Exception as e:
        await request.app.state.log.log_error("payment", f"결제 취소 오류: {e}", {"id": id})
        raise
