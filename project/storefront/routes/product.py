# storefront/routes/product.py

from fastapi import APIRouter, Depends, Query, Request, status

from storefront.routes.auth import require_admin
from storefront.schemas.product import Product, ProductCreate, ProductList, ProductUpdate, StockAdjust
from storefront.services.product import (
    adjust_stock_service,
    create_product_service,
    delete_product_service,
    list_products_service,
    localize_product,
    read_product_service,
    update_product_service,
)

router = APIRouter()
admin_router = APIRouter()


# ────────────── 공개 조회 ──────────────
@router.get(
    "",
    response_model=ProductList,
    summary="상품 목록",
    responses={200: {"description": "활성 상품 목록 (검색, 카테고리, 페이지네이션)"}},
)
async def list_products(
    request: Request,
    q: str | None = None,
    category: str | None = None,
    language: str | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
):
    try:
        products, total = await list_products_service(request, q, category, skip, limit)
        return {
            "items": [localize_product(p, language) for p in products],
            "total": total,
            "skip": skip,
            "limit": limit,
        }
    except Exception as e:
        await request.app.state.log.log_error("product", f"상품 목록 오류: {e}")
        raise


@router.get(
    "/{id_or_slug}",
    response_model=Product,
    summary="상품 상세 (ID 또는 slug)",
    responses={404: {"description": "상품 없음"}},
)
async def read_product(id_or_slug: str, request: Request, language: str | None = None):
    product = await read_product_service(id_or_slug, request)
    return localize_product(product, language)


# ────────────── 관리자 ──────────────
@admin_router.get("", response_model=ProductList, summary="상품 목록 (비활성 포함)")
async def admin_list_products(
    request: Request,
    q: str | None = None,
    category: str | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    _=Depends(require_admin),
):
    products, total = await list_products_service(request, q, category, skip, limit, include_inactive=True)
    return {"items": products, "total": total, "skip": skip, "limit": limit}


@admin_router.post(
    "",
    response_model=Product,
    status_code=status.HTTP_201_CREATED,
    summary="상품 등록",
    responses={409: {"description": "slug 중복"}, 422: {"description": "입력 검증 오류"}},
)
async def create_product(product: ProductCreate, request: Request, _=Depends(require_admin)):
    try:
        return await create_product_service(product, request)
    except Exception as e:
        await request.app.state.log.log_error("product", f"상품 등록 오류: {e}", {"slug": product.slug})
        raise


@admin_router.put("/{id}", response_model=Product, summary="상품 수정", responses={404: {"description": "상품 없음"}})
async def update_product(id: int, product_update: ProductUpdate, request: Request, _=Depends(require_admin)):
    try:
        return await update_product_service(id, product_update, request)
    except Exception as e:
        await request.app.state.log.log_error("product", f"상품 수정 오류: {e}", {"id": id})
        raise


@admin_router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT, summary="상품 삭제 (비활성화)")
async def delete_product(id: int, request: Request, _=Depends(require_admin)):
    await delete_product_service(id, request)


@admin_router.patch(
    "/{id}/stock",
    response_model=Product,
    summary="재고 조정",
    responses={400: {"description": "재고가 음수가 됨"}, 404: {"description": "상품 없음"}},
)
async def adjust_stock(id: int, body: StockAdjust, request: Request, _=Depends(require_admin)):
    try:
        return await adjust_stock_service(id, body.delta, request, body.reason)
    except Exception as e:
        await request.app.state.log.log_error("product", f"재고 조정 오류: {e}", {"id": id, "delta": body.delta})
        raise
