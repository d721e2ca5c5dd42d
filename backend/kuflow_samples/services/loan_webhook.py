# kuflow_samples/services/loan_webhook.py
# 贷款流程 Webhook 处理器
#
# 与 temporal/workflows/loan.py 是同一个业务流程，但不依赖 Temporal：
# 每次 KuFlow 推送 Webhook 事件时推进一步，状态全部保存在 KuFlow 中。
#
# 事件处理：
# - PROCESS.STATE_CHANGED (RUNNING)            → 创建 LOAN_APPLICATION 任务
# - LOAN_APPLICATION 任务完成                    → 换算金额
#     > 5000 欧元 → 创建 APPROVE_LOAN 任务
#     否则        → 创建 NOTIFICATION_GRANTED，分配给发起人，完成流程
# - APPROVE_LOAN 任务完成                        → APPROVAL == "YES" 发放/拒绝通知，
#                                                   分配给发起人，完成流程
#
# KuFlow 返回 403（流程已完成或取消）或 409（资源状态不对）时，
# 记录日志并忽略该事件；其他错误继续抛出。
# 申请金额或货币非法时同样忽略（重新投递也无法成功）。

from decimal import Decimal
from http import HTTPStatus
from typing import Optional
from uuid import UUID

from kuflow_samples.adapters.kuflow import KuFlowApiError, KuFlowRestClient
from kuflow_samples.core.logging import get_logger
from kuflow_samples.schemas.kuflow import (
    JsonValue,
    ProcessItem,
    ProcessItemCreateParams,
    ProcessItemTaskCreateParams,
    ProcessItemTaskState,
    ProcessItemType,
    ProcessState,
    WebhookEvent,
    WebhookEventProcessItemTaskStateChanged,
    WebhookEventProcessItemTaskStateChangedData,
    WebhookEventProcessStateChanged,
    WebhookEventProcessStateChangedData,
)
from kuflow_samples.services.currency import CurrencyConversionError, CurrencyConverter, format_amount

logger = get_logger(__name__)


TASK_LOAN_APPLICATION = "LOAN_APPLICATION"
TASK_APPROVE_LOAN = "APPROVE_LOAN"
TASK_NOTIFICATION_GRANTED = "NOTIFICATION_GRANTED"
TASK_NOTIFICATION_REJECTION = "NOTIFICATION_REJECTION"

APPROVAL_THRESHOLD_EUR = Decimal("5000")


class LoanWebhookHandler:
    """
    贷款流程 Webhook 处理器

    使用方法：
        handler = LoanWebhookHandler(rest_client)
        await handler.handle(event)
    """

    def __init__(
        self,
        rest_client: KuFlowRestClient,
        converter: Optional[CurrencyConverter] = None,
    ):
        self.rest_client = rest_client
        self.converter = converter or CurrencyConverter()

    async def handle(self, event: WebhookEvent) -> None:
        """
        处理一个 Webhook 事件

        Raises:
            KuFlowApiError: 403 / 409 以外的 API 错误
        """
        try:
            if isinstance(event, WebhookEventProcessStateChanged):
                await self._handle_process_state_changed(event.data)
            elif isinstance(event, WebhookEventProcessItemTaskStateChanged):
                await self._handle_task_state_changed(event.data)
            else:
                logger.debug(f"忽略事件: type={event.type}, id={event.id}")
        except KuFlowApiError as e:
            if e.status == HTTPStatus.FORBIDDEN:
                logger.error(
                    "The resource cannot be accessed, the process may be completed or cancelled. "
                    f"We ignore this event. Id: {event.id}"
                )
            elif e.status == HTTPStatus.CONFLICT:
                logger.error(f"Invalid state of resource. We ignore this event. Id: {event.id}")
            else:
                raise
        except CurrencyConversionError as e:
            logger.error(f"Invalid loan application, we ignore this event. Id: {event.id}. {e}")

    async def _handle_process_state_changed(self, data: WebhookEventProcessStateChangedData) -> None:
        if data.process_state == ProcessState.RUNNING:
            await self._create_task(data.process_id, TASK_LOAN_APPLICATION)

    async def _handle_task_state_changed(self, data: WebhookEventProcessItemTaskStateChangedData) -> None:
        if data.process_item_state != ProcessItemTaskState.COMPLETED:
            return

        if data.process_item_task_code == TASK_LOAN_APPLICATION:
            await self._handle_loan_application(data)
        elif data.process_item_task_code == TASK_APPROVE_LOAN:
            await self._handle_approve_loan(data)

    async def _handle_loan_application(self, data: WebhookEventProcessItemTaskStateChangedData) -> None:
        loan_application = await self.rest_client.retrieve_process_item(data.process_item_id)

        amount_eur = await self.converter.convert_to_euros(
            loan_application.task_value("CURRENCY"),
            loan_application.task_value("AMOUNT", "0"),
        )

        if amount_eur > APPROVAL_THRESHOLD_EUR:
            await self._create_task(
                data.process_id,
                TASK_APPROVE_LOAN,
                {
                    "FIRST_NAME": loan_application.task_value("FIRST_NAME"),
                    "LAST_NAME": loan_application.task_value("LAST_NAME"),
                    "AMOUNT": format_amount(amount_eur),
                },
            )
        else:
            notification = await self._create_task(data.process_id, TASK_NOTIFICATION_GRANTED)
            await self._notify_initiator_and_complete(data.process_id, notification)

    async def _handle_approve_loan(self, data: WebhookEventProcessItemTaskStateChangedData) -> None:
        approve_loan = await self.rest_client.retrieve_process_item(data.process_item_id)

        if approve_loan.task_value("APPROVAL") == "YES":
            notification = await self._create_task(data.process_id, TASK_NOTIFICATION_GRANTED)
        else:
            notification = await self._create_task(data.process_id, TASK_NOTIFICATION_REJECTION)

        await self._notify_initiator_and_complete(data.process_id, notification)

    async def _notify_initiator_and_complete(self, process_id: UUID, notification: ProcessItem) -> None:
        """通知任务分配给流程发起人，然后完成流程"""
        process = await self.rest_client.retrieve_process(process_id)
        await self.rest_client.assign_process_item_task(notification.id, process.initiator_id)
        await self.rest_client.complete_process(process_id)
        logger.info(f"贷款流程完成: process_id={process_id}")

    async def _create_task(
        self,
        process_id: UUID,
        task_definition_code: str,
        data: Optional[dict] = None,
    ) -> ProcessItem:
        params = ProcessItemCreateParams(
            type=ProcessItemType.TASK,
            process_id=process_id,
            task=ProcessItemTaskCreateParams(
                task_definition_code=task_definition_code,
                data=JsonValue(value=data) if data else None,
            ),
        )
        logger.info(f"创建任务: process_id={process_id}, code={task_definition_code}")
        return await self.rest_client.create_process_item(params)
