# storefront/services/product.py

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select
from fastapi import Request

from storefront.errors import AppError, ErrorCode, not_found
from storefront.models.product import Product as ProductModel
from storefront.schemas.product import ProductCreate, ProductUpdate


def localize_product(product: ProductModel, language: str | None) -> dict:
    """translations[language] 의 name/description 을 덮어쓴 dict."""
    data = {c.name: getattr(product, c.name) for c in ProductModel.__table__.columns}
    if language:
        own = (product.translations or {}).get(language) or {}
        for field in ("name", "description"):
            if own.get(field):
                data[field] = own[field]
    return data


async def list_products_service(
    request: Request,
    q: str | None = None,
    category: str | None = None,
    skip: int = 0,
    limit: int = 20,
    include_inactive: bool = False,
) -> tuple[list[ProductModel], int]:
    """
    상품 목록 (검색어, 카테고리, 페이지네이션).
    """
    db = request.state.db
    log = request.app.state.log

    stmt = select(ProductModel)
    if not include_inactive:
        stmt = stmt.where(ProductModel.is_active.is_(True))
    if category:
        stmt = stmt.where(ProductModel.category == category)
    if q:
        pattern = f"%{q}%"
        stmt = stmt.where(or_(ProductModel.name.ilike(pattern), ProductModel.description.ilike(pattern)))

    total = (await db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()
    result = await db.execute(stmt.order_by(ProductModel.id.desc()).offset(skip).limit(limit))
    products = result.scalars().all()

    await log.log_info("product", f"{len(products)}개 상품 조회", {"q": q, "category": category})
    return products, total


async def read_product_service(id_or_slug: str, request: Request, include_inactive: bool = False) -> ProductModel:
    db = request.state.db

    if str(id_or_slug).isdigit():
        stmt = select(ProductModel).where(ProductModel.id == int(id_or_slug))
    else:
        stmt = select(ProductModel).where(ProductModel.slug == id_or_slug)
    product = (await db.execute(stmt)).scalar_one_or_none()

    if product is None or (not include_inactive and not product.is_active):
        await request.app.state.log.log_warning("product", "상품 없음", {"id": id_or_slug})
        raise not_found("상품을 찾을 수 없습니다.")
    return product


async def create_product_service(product: ProductCreate, request: Request) -> ProductModel:
    db = request.state.db
    log = request.app.state.log

    db_product = ProductModel(**product.model_dump())
    db.add(db_product)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise AppError(ErrorCode.CONFLICT, f"이미 사용 중인 slug 입니다: {product.slug}")
    await db.refresh(db_product)

    await log.log_info("product", "상품 등록", {"id": db_product.id, "slug": db_product.slug})
    return db_product


async def update_product_service(id: int, product_update: ProductUpdate, request: Request) -> ProductModel:
    db = request.state.db
    log = request.app.state.log

    db_product = await read_product_service(str(id), request, include_inactive=True)
    for key, value in product_update.model_dump(exclude_unset=True).items():
        setattr(db_product, key, value)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise AppError(ErrorCode.CONFLICT, "이미 사용 중인 slug 입니다.")
    await db.refresh(db_product)

    await log.log_info("product", "상품 수정", {"id": id})
    return db_product


async def delete_product_service(id: int, request: Request) -> None:
    """
    상품 삭제. 주문 이력이 남도록 실제로는 비활성화한다.
    """
    db = request.state.db
    log = request.app.state.log

    db_product = await read_product_service(str(id), request, include_inactive=True)
    db_product.is_active = False
    await db.commit()
    await log.log_info("product", "상품 비활성화", {"id": id})


async def adjust_stock_service(id: int, delta: int, request: Request, reason: str | None = None) -> ProductModel:
    db = request.state.db
    log = request.app.state.log

    db_product = await read_product_service(str(id), request, include_inactive=True)
    new_stock = db_product.stock + delta
    if new_stock < 0:
        raise AppError(ErrorCode.BUSINESS_RULE, f"재고가 부족합니다. (현재 {db_product.stock}개)")

    db_product.stock = new_stock
    await db.commit()
    await db.refresh(db_product)

    request.app.state.events.broadcast("inventory-update", {
        "productId": db_product.id,
        "stock": db_product.stock,
        "delta": delta,
        "reason": reason,
    })
    await log.log_info("product", "재고 조정", {"id": id, "delta": delta, "stock": new_stock})
    return db_product
