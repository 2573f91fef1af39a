# storefront/routes/events.py

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse

from storefront.config import settings
from storefront.routes.auth import require_admin

router = APIRouter()
admin_router = APIRouter()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@router.get("", summary="실시간 이벤트 스트림 (SSE)", response_class=StreamingResponse)
async def event_stream(request: Request):
    """
    text/event-stream 으로 ui-section-update, language-pack-update,
    order-update, inventory-update, heartbeat 이벤트를 보낸다.
    """
    events = request.app.state.events
    queue = events.new_client_queue()
    await request.app.state.log.log_info("events", "SSE 연결", {"clients": events.client_count + 1})
    return StreamingResponse(
        events.stream(queue, settings.SSE_HEARTBEAT_SECONDS),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@admin_router.get("/recent", summary="최근 이벤트 (링 버퍼)")
async def recent_events(request: Request, limit: int = Query(20, ge=1, le=100), _=Depends(require_admin)):
    events = request.app.state.events
    return {"clients": events.client_count, "events": events.recent_events(limit)}
