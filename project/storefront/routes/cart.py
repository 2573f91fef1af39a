# storefront/routes/cart.py

from fastapi import APIRouter, Depends, Request, status

from storefront.routes.auth import get_current_user
from storefront.schemas.cart import Cart, CartItemAdd, CartItemUpdate
from storefront.services.cart import (
    add_cart_item_service,
    clear_cart_service,
    read_cart_service,
    remove_cart_item_service,
    update_cart_item_service,
)

router = APIRouter()


@router.get("", response_model=Cart, summary="장바구니 조회")
async def read_cart(request: Request, current_user=Depends(get_current_user)):
    return await read_cart_service(current_user.id, request)


@router.post(
    "",
    response_model=Cart,
    status_code=status.HTTP_201_CREATED,
    summary="장바구니 담기",
    responses={404: {"description": "상품 없음"}, 409: {"description": "재고 부족"}},
)
async def add_cart_item(body: CartItemAdd, request: Request, current_user=Depends(get_current_user)):
    try:
        return await add_cart_item_service(current_user.id, body.product_id, body.quantity, request)
    except Exception as e:
        await request.app.state.log.log_error("cart", f"장바구니 추가 오류: {e}", {"product_id": body.product_id})
        raise


@router.patch("/{product_id}", response_model=Cart, summary="수량 변경", responses={409: {"description": "재고 부족"}})
async def update_cart_item(
    product_id: int, body: CartItemUpdate, request: Request, current_user=Depends(get_current_user)
):
    return await update_cart_item_service(current_user.id, product_id, body.quantity, request)


@router.delete("/{product_id}", response_model=Cart, summary="장바구니에서 삭제")
async def remove_cart_item(product_id: int, request: Request, current_user=Depends(get_current_user)):
    return await remove_cart_item_service(current_user.id, product_id, request)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT, summary="장바구니 비우기")
async def clear_cart(request: Request, current_user=Depends(get_current_user)):
    await clear_cart_service(current_user.id, request)
