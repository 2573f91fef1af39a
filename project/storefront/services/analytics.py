# storefront/services/analytics.py

from sqlalchemy import func
from sqlalchemy.future import select
from fastapi import Request

from storefront.models.order import Order
from storefront.models.payment import Payment, Refund
from storefront.models.product import Product


async def dashboard_service(request: Request, low_stock_threshold: int = 5) -> dict:
    """
    관리자 대시보드 집계: 상태별 주문 수, 결제 매출, 환불 합계, 재고 부족 상품.
    """
    db = request.state.db

    rows = await db.execute(select(Order.status, func.count(Order.id)).group_by(Order.status))
    orders_by_status = {status: count for status, count in rows.all()}

    paid_revenue = (await db.execute(
        select(func.coalesce(func.sum(Payment.amount), 0)).where(Payment.status.in_(("paid", "refunded")))
    )).scalar_one()
    refunded_total = (await db.execute(select(func.coalesce(func.sum(Refund.amount), 0)))).scalar_one()

    product_count = (await db.execute(
        select(func.count(Product.id)).where(Product.is_active.is_(True))
    )).scalar_one()
    low_stock = (await db.execute(
        select(Product.id, Product.name, Product.stock)
        .where(Product.is_active.is_(True), Product.stock <= low_stock_threshold)
        .order_by(Product.stock)
    )).all()

    return {
        "ordersByStatus": orders_by_status,
        "totalOrders": sum(orders_by_status.values()),
        "paidRevenue": paid_revenue,
        "refundedTotal": refunded_total,
        "netRevenue": paid_revenue - refunded_total,
        "productCount": product_count,
        "lowStockProducts": [{"id": id, "name": name, "stock": stock} for id, name, stock in low_stock],
        "sseClients": request.app.state.events.client_count,
    }
