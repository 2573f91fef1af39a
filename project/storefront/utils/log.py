# storefront/utils/log.py
# 이벤트 로깅

import os
import datetime
import logging
from aiologger import Logger
from aiologger.handlers.files import AsyncFileHandler

from storefront.config import settings

class Log:
    def __init__(self, log_dir: str | None = None):
        self.log_dir = log_dir or settings.LOG_DIR
        os.makedirs(self.log_dir, exist_ok=True)
        self.handlers = {}
        self.log_print = str(settings.LOG_PRINT).lower() in ("1", "true", "yes")

    def build_log_path(self, now: datetime.datetime) -> str:
        """
        일별 로그 파일 경로:
        log/2025/10/04.log
        """
        base_dir = os.path.join(self.log_dir, f"{now.year}", f"{now:%m}")
        os.makedirs(base_dir, exist_ok=True)
        return os.path.join(base_dir, f"{now:%d}.log")

    def format_line(self, now: datetime.datetime, target: str, message: str, data: dict | None) -> str:
        line = f"{now:%d.%m.%Y %H:%M:%S} {target}: {message}"
        if data:
            line += f": {self.safe_serialize(data)}"
        return line

    async def get_logger(self, target: str, now: datetime.datetime) -> Logger:
        """target 별 비동기 로거. 날짜가 바뀌면 핸들러를 새 파일로 교체한다."""
        log_path = self.build_log_path(now)

        current = self.handlers.get(target)
        if current is None or current["path"] != log_path:
            handler = AsyncFileHandler(filename=log_path, mode="a", encoding="utf-8")
            target_logger = Logger(name=f"storefront_{target}")
            target_logger.add_handler(handler)

            if current is not None:
                await current["logger"].shutdown()

            self.handlers[target] = {
                "path": log_path,
                "logger": target_logger,
            }

        return self.handlers[target]["logger"]

    # 비동기
    async def log_info(
        self,
        target: str = "",
        message: str = "",
        data: dict | None = None,
        is_console: bool = None,
    ):
        now = datetime.datetime.now()
        line = self.format_line(now, target, message, data)

        target_logger = await self.get_logger(target, now)
        await target_logger.info(line)

        should_print = self.log_print if is_console is None else is_console
        if should_print:
            print(line)

    async def log_warning(self, target: str = "", message: str = "", data: dict | None = None, is_console: bool = None):
        await self.log_info(target, f"WARNING: {message}", data, is_console)

    async def log_error(
        self, target: str = "", message: str = "", data: dict | None = None, is_console: bool = True
    ):
        await self.log_info(target, f"ERROR: {message}", data, is_console)

    # 동기 (이벤트 루프 시작 전)
    def log_info_sync(
        self, target: str = "", message: str = "", data: dict | None = None, is_console: bool = None
    ):
        now = datetime.datetime.now()
        log_path = self.build_log_path(now)
        line = self.format_line(now, target, message, data)

        logger = logging.getLogger(f"storefront_sync_{target}")
        logger.setLevel(logging.INFO)
        logger.propagate = False

        if not logger.handlers:
            handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
            handler.setFormatter(logging.Formatter("%(message)s"))
            logger.addHandler(handler)

        logger.info(line)

        should_print = self.log_print if is_console is None else is_console
        if should_print:
            print(line)

    def safe_serialize(self, obj):
        """
        로그에 남길 수 있는 형태로 변환:
        - dict, list, tuple, set 은 재귀적으로
        - Pydantic 모델은 model_dump 로
        - SQLAlchemy 모델 등은 공개 속성만
        - 그 외는 타입 이름 문자열
        """
        if obj is None:
            return None
        elif isinstance(obj, (str, int, float, bool)):
            return obj
        elif isinstance(obj, (datetime.datetime, datetime.date)):
            return obj.isoformat()
        elif isinstance(obj, dict):
            return {k: self.safe_serialize(v) for k, v in obj.items()}
        elif isinstance(obj, (list, tuple, set)):
            return [self.safe_serialize(v) for v in obj]
        elif hasattr(obj, "model_dump"):
            return self.safe_serialize(obj.model_dump())
        elif hasattr(obj, "__dict__"):
            return {k: self.safe_serialize(v) for k, v in vars(obj).items() if not k.startswith("_")}
        else:
            return f"<{type(obj).__name__}>"

    async def shutdown(self):
        for h in list(self.handlers.values()):
            await h["logger"].shutdown()
        self.handlers = {}
