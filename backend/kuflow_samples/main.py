# kuflow_samples/main.py
# FastAPI 应用入口（贷款流程的 Webhook 版本）
#
# 这个版本不依赖 Temporal：KuFlow 把流程/任务状态变化推送到 /webhooks，
# 由 LoanWebhookHandler 直接调用 KuFlow REST API 推进流程。
#
# 启动命令：
#   uvicorn kuflow_samples.main:app --host 0.0.0.0 --port 8000
#
# 在 KuFlow 中把 Webhook 地址配置为 http(s)://<host>/webhooks

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from kuflow_samples.adapters.kuflow import KuFlowApiError, KuFlowRestClient
from kuflow_samples.api import health, webhooks
from kuflow_samples.core.config import settings
from kuflow_samples.core.logging import RequestLoggingMiddleware, get_logger, setup_logging
from kuflow_samples.services.loan_webhook import LoanWebhookHandler


setup_logging("webhook")

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    应用生命周期管理

    - 启动时：创建 KuFlow REST 客户端和 Webhook 处理器，放到 app.state
    - 关闭时：关闭 KuFlow 客户端的 HTTP 连接池
    """
    rest_client = KuFlowRestClient()
    app.state.kuflow_rest_client = rest_client
    app.state.loan_webhook_handler = LoanWebhookHandler(rest_client)
    logger.info(f"{settings.APP_NAME} 已启动，KuFlow API: {settings.KUFLOW_API_ENDPOINT}")

    yield

    await rest_client.aclose()
    logger.info(f"{settings.APP_NAME} 已关闭")


app = FastAPI(
    title=settings.APP_NAME,
    description="KuFlow 贷款流程示例：通过 Webhook 驱动，不依赖 Temporal",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(KuFlowApiError)
async def kuflow_api_error_handler(request: Request, exc: KuFlowApiError):
    """
    KuFlow API 调用失败

    403 / 409 已在处理器中忽略，到这里的都是需要 KuFlow 重新投递的错误，
    返回 502 让 KuFlow 知道这次投递没有成功
    """
    logger.error(f"KuFlow API 错误: status={exc.status}, body={exc.body}")
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": "KuFlow API error", "status": exc.status},
    )


# GET /health
app.include_router(health.router)
# POST /webhooks
app.include_router(webhooks.router)


@app.get("/")
async def root():
    return {
        "name": settings.APP_NAME,
        "docs": "/docs",
        "health": "/health",
        "webhooks": "/webhooks",
    }
