# kuflow_samples/api/webhooks.py
# KuFlow Webhook 接收端点
#
# POST /webhooks
#   请求体：KuFlow 推送的原始事件 JSON
#   返回：200（包括被忽略的事件），请求体无法解析时返回 400

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import ValidationError

from kuflow_samples.core.logging import get_logger
from kuflow_samples.schemas.kuflow import parse_webhook_event
from kuflow_samples.services.loan_webhook import LoanWebhookHandler

logger = get_logger(__name__)

router = APIRouter(tags=["Webhooks"])


def get_loan_webhook_handler(request: Request) -> LoanWebhookHandler:
    """从应用状态中取出处理器（在 lifespan 中创建）"""
    return request.app.state.loan_webhook_handler


@router.post("/webhooks")
async def handle_event(
    request: Request,
    handler: LoanWebhookHandler = Depends(get_loan_webhook_handler),
):
    """接收并处理 KuFlow Webhook 事件"""
    payload = await request.body()
    logger.info(f"Event {payload.decode('utf-8', errors='replace')}")

    try:
        event = parse_webhook_event(payload)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    await handler.handle(event)

    return {"status": "ok"}
