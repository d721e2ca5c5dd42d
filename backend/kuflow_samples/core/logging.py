# kuflow_samples/core/logging.py
# 日志配置模块
#
# 功能说明：
# 1. Worker 进程和 Webhook 服务共用一套日志输出，用 service 区分来源
# 2. 两种格式：彩色控制台（开发）和 JSON（生产）
# 3. workflow.logger / activity.logger 附带的 Temporal 上下文会展开输出
# 4. Webhook 服务的请求日志中间件
#
# 使用方法：
#   from kuflow_samples.core.logging import get_logger
#   logger = get_logger(__name__)
#
# Workflow 内部请使用 workflow.logger，Activity 内部请使用 activity.logger，
# 它们会自动附带 workflow_id / activity_id 等上下文。

import json
import logging
import sys
import time
from datetime import datetime
from typing import Any, Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from kuflow_samples.core.config import settings


# 从 Temporal 上下文中挑出来输出的字段
TEMPORAL_CONTEXT_FIELDS = {
    "temporal_activity": ("activity_type", "activity_id", "workflow_id", "attempt"),
    "temporal_workflow": ("workflow_type", "workflow_id", "run_id"),
}

# 这些路径的请求日志降为 DEBUG（探活请求太频繁）
QUIET_PATHS = {"/health"}


def temporal_context(record: logging.LogRecord) -> dict[str, Any]:
    """
    提取日志记录中的 Temporal 上下文

    Activity 的上下文优先（Activity 日志也带 workflow_id）

    Returns:
        dict: 例如 {"activity_type": "Email_sendMail", "workflow_id": "...", "attempt": 1}
    """
    context: dict[str, Any] = {}
    for attr, fields in TEMPORAL_CONTEXT_FIELDS.items():
        extra = getattr(record, attr, None)
        if not isinstance(extra, dict):
            continue
        for field in fields:
            if extra.get(field) is not None:
                context.setdefault(field, extra[field])
    return context


# ==================== 彩色输出支持 ====================

class Colors:
    """终端 ANSI 颜色代码"""
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    GRAY = "\033[90m"


LEVEL_COLORS = {
    "DEBUG": Colors.BLUE,
    "INFO": Colors.GREEN,
    "WARNING": Colors.YELLOW,
    "ERROR": Colors.RED,
    "CRITICAL": Colors.MAGENTA,
}


# ==================== 自定义 Formatter ====================

class ColoredFormatter(logging.Formatter):
    """
    彩色日志格式化器（开发环境使用）

    输出格式：
    12:00:00 worker INFO     kuflow_samples.temporal.worker - Worker 已启动
    12:00:05 worker INFO     temporalio.activity - [SMTP] 发送成功 [Email_sendMail wf=loan-123 #1]
    """

    def __init__(self, service: str):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        level_color = LEVEL_COLORS.get(record.levelname, Colors.RESET)

        line = (
            f"{Colors.CYAN}{timestamp}{Colors.RESET} "
            f"{Colors.GRAY}{self.service}{Colors.RESET} "
            f"{level_color}{record.levelname:8}{Colors.RESET} "
            f"{record.name} - {record.getMessage()}"
        )

        context = temporal_context(record)
        if context:
            parts = [context.get("activity_type") or context.get("workflow_type") or ""]
            if "workflow_id" in context:
                parts.append(f"wf={context['workflow_id']}")
            if "attempt" in context:
                parts.append(f"#{context['attempt']}")
            line += f" {Colors.GRAY}[{' '.join(p for p in parts if p)}]{Colors.RESET}"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)

        return line


class JSONFormatter(logging.Formatter):
    """
    JSON 日志格式化器（生产环境使用）

    每行一个 JSON 对象，Temporal 上下文展开为顶层字段：
    {"timestamp": "...", "service": "worker", "level": "INFO", "workflow_id": "...", ...}
    """

    def __init__(self, service: str):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "service": self.service,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_data.update(temporal_context(record))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


# ==================== Logger 工厂函数 ====================

def setup_logging(service: str = "app", level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    """
    初始化日志系统

    在进程启动时调用一次：
    - Worker：setup_logging("worker")
    - Webhook 服务：setup_logging("webhook")

    Args:
        service: 进程名称，出现在每一行日志中
        level: 日志级别，默认读取 LOG_LEVEL
        fmt: "console" 或 "json"，默认读取 LOG_FORMAT
    """
    level = level or settings.LOG_LEVEL
    fmt = fmt or settings.LOG_FORMAT

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter(service) if fmt == "json" else ColoredFormatter(service))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # 第三方库日志级别
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("aiosmtplib").setLevel(logging.WARNING)
    logging.getLogger("temporalio").setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
    # 请求日志由 RequestLoggingMiddleware 输出
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """获取 logger 实例，name 通常传入 __name__"""
    return logging.getLogger(name)


# ==================== 请求日志中间件 ====================

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    HTTP 请求日志中间件

    输出示例：
    POST /webhooks 200 45ms
    """

    def __init__(self, app, logger: Optional[logging.Logger] = None):
        super().__init__(app)
        self.logger = logger or get_logger("kuflow_samples.request")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        target = f"{request.method} {request.url.path}"

        try:
            response = await call_next(request)
        except Exception:
            elapsed = (time.perf_counter() - started) * 1000
            self.logger.exception(f"{target} failed after {elapsed:.0f}ms")
            raise

        elapsed = (time.perf_counter() - started) * 1000
        message = f"{target} {response.status_code} {elapsed:.0f}ms"

        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code >= 400:
            level = logging.WARNING
        elif request.url.path in QUIET_PATHS:
            level = logging.DEBUG
        else:
            level = logging.INFO
        self.logger.log(level, message)

        return response
