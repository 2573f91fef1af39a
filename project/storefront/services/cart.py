# storefront/services/cart.py

from sqlalchemy import delete
from sqlalchemy.future import select
from fastapi import Request

from storefront.errors import AppError, ErrorCode, not_found
from storefront.models.cart import CartItem
from storefront.models.product import Product


async def _cart_rows(db, user_id: int) -> list[tuple[CartItem, Product]]:
    result = await db.execute(
        select(CartItem, Product)
        .join(Product, Product.id == CartItem.product_id)
        .where(CartItem.user_id == user_id)
        .order_by(CartItem.id)
    )
    return result.all()


async def read_cart_service(user_id: int, request: Request) -> dict:
    """장바구니 목록과 합계."""
    db = request.state.db

    lines = []
    for item, product in await _cart_rows(db, user_id):
        lines.append({
            "product_id": product.id,
            "name": product.name,
            "unit_price": product.price,
            "quantity": item.quantity,
            "line_total": product.price * item.quantity,
            "in_stock": bool(product.is_active) and product.stock >= item.quantity,
        })

    return {
        "items": lines,
        "total_amount": sum(line["line_total"] for line in lines),
        "total_quantity": sum(line["quantity"] for line in lines),
    }


async def add_cart_item_service(user_id: int, product_id: int, quantity: int, request: Request) -> dict:
    """같은 상품이 있으면 수량을 더한다."""
    db = request.state.db
    log = request.app.state.log

    product = await db.get(Product, product_id)
    if product is None or not product.is_active:
        raise not_found("상품을 찾을 수 없습니다.")

    result = await db.execute(
        select(CartItem).where(CartItem.user_id == user_id, CartItem.product_id == product_id)
    )
    item = result.scalar_one_or_none()
    new_quantity = quantity + (item.quantity if item else 0)
    if new_quantity > product.stock:
        raise AppError(ErrorCode.CONFLICT, f"재고가 부족합니다. (남은 수량 {product.stock}개)")

    if item is None:
        db.add(CartItem(user_id=user_id, product_id=product_id, quantity=new_quantity))
    else:
        item.quantity = new_quantity
    await db.commit()

    await log.log_info("cart", "장바구니 추가", {"user_id": user_id, "product_id": product_id, "quantity": new_quantity})
    return await read_cart_service(user_id, request)


async def update_cart_item_service(user_id: int, product_id: int, quantity: int, request: Request) -> dict:
    db = request.state.db

    result = await db.execute(
        select(CartItem, Product)
        .join(Product, Product.id == CartItem.product_id)
        .where(CartItem.user_id == user_id, CartItem.product_id == product_id)
    )
    row = result.first()
    if row is None:
        raise not_found("장바구니에 없는 상품입니다.")
    item, product = row
    if quantity > product.stock:
        raise AppError(ErrorCode.CONFLICT, f"재고가 부족합니다. (남은 수량 {product.stock}개)")

    item.quantity = quantity
    await db.commit()
    return await read_cart_service(user_id, request)


async def remove_cart_item_service(user_id: int, product_id: int, request: Request) -> dict:
    db = request.state.db

    result = await db.execute(
        delete(CartItem).where(CartItem.user_id == user_id, CartItem.product_id == product_id)
    )
    if result.rowcount == 0:
        raise not_found("장바구니에 없는 상품입니다.")
    await db.commit()
    return await read_cart_service(user_id, request)


async def clear_cart_service(user_id: int, request: Request, commit: bool = True) -> None:
    db = request.state.db
    await db.execute(delete(CartItem).where(CartItem.user_id == user_id))
    if commit:
        await db.commit()
