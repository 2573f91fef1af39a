# storefront/routes/order.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from storefront.routes.auth import get_current_user, require_admin
from storefront.schemas.order import Order, OrderCreate, OrderStatusUpdate
from storefront.services.order import (
    create_order_service,
    read_order_service,
    read_orders_service,
    update_order_status_service,
)

router = APIRouter()
admin_router = APIRouter()


# ────────────── CREATE ──────────────
@router.post(
    "",
    response_model=Order,
    status_code=status.HTTP_201_CREATED,
    summary="주문 생성",
    response_description="생성된 주문",
    responses={
        201: {"description": "주문 생성 완료"},
        400: {"description": "빈 장바구니 또는 판매 중지 상품"},
        401: {"description": "로그인 필요"},
        409: {"description": "재고 부족"},
        422: {"description": "입력 검증 오류"},
    },
)
async def create_order(request: Request, order: OrderCreate, current_user=Depends(get_current_user)):
    try:
        return await create_order_service(order, current_user.id, request)
    except Exception as e:
        await request.app.state.log.log_error("order", f"주문 생성 오류: {e}", {"user_id": current_user.id})
        raise


# ────────────── READ ALL ──────────────
@router.get(
    "",
    response_model=List[Order],
    summary="내 주문 목록",
    responses={401: {"description": "로그인 필요"}},
)
async def read_my_orders(
    request: Request,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200),
    current_user=Depends(get_current_user),
):
    return await read_orders_service(request, user_id=current_user.id, skip=skip, limit=limit)


# ────────────── READ ONE ──────────────
@router.get(
    "/{id}",
    response_model=Order,
    summary="주문 조회",
    responses={403: {"description": "다른 사용자의 주문"}, 404: {"description": "주문 없음"}},
)
async def read_order(id: int, request: Request, current_user=Depends(get_current_user)):
    order = await read_order_service(id, request)
    if not current_user.is_admin and order.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="다른 사용자의 주문입니다.")
    return order


# ────────────── 관리자 ──────────────
@admin_router.get("", response_model=List[Order], summary="전체 주문 목록")
async def read_all_orders(
    request: Request,
    status_filter: str | None = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    _=Depends(require_admin),
):
    return await read_orders_service(request, status=status_filter, skip=skip, limit=limit)


@admin_router.patch(
    "/{id}/status",
    response_model=Order,
    summary="주문 상태 변경",
    responses={
        400: {"description": "허용되지 않는 상태 전이"},
        404: {"description": "주문 없음"},
    },
)
async def update_order_status(id: int, body: OrderStatusUpdate, request: Request, _=Depends(require_admin)):
    try:
        return await update_order_status_service(id, body.status, request)
    except Exception as e:
        await request.app.state.log.log_error("order", f"주문 상태 변경 오류: {e}", {"id": id, "status": body.status})
        raise
