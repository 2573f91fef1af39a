# storefront/utils/db_service.py

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from storefront.utils.database import AsyncSessionLocal


async def ping_database(log=None) -> bool:
    """헬스 체크용 `SELECT 1`. 실패하면 로그를 남기고 False."""
    async with AsyncSessionLocal() as session:
        try:
            await session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            if log:
                await log.log_error("health", f"DB 연결 실패: {e}")
            return False
