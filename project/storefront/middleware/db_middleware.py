# storefront/middleware/db_middleware.py

from starlette.types import ASGIApp, Receive, Scope, Send
from storefront.utils.database import AsyncSessionLocal

class DBSessionMiddleware:
    """요청마다 AsyncSession 을 열어 request.state.db 에 둔다."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        state = scope.setdefault("state", {})
        session = AsyncSessionLocal()
        state["db"] = session
        try:
            await self.app(scope, receive, send)
        finally:
            # 응답(스트리밍 포함)이 끝난 뒤에 닫는다
            await session.close()
