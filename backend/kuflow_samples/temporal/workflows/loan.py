# kuflow_samples/temporal/workflows/loan.py
# 贷款申请工作流
#
# 流程：
# 1. 创建 LOAN_APPLICATION 任务，等待申请人填写
# 2. 把申请人姓名写入流程元数据（FIRST_NAME / LAST_NAME）
# 3. 金额换算成欧元
# 4. 超过 5000 欧元 → 创建 APPROVE_LOAN 任务，等待审批（APPROVAL == "YES" 为通过）
# 5. 给流程发起人创建 NOTIFICATION_GRANTED 或 NOTIFICATION_REJECTION 通知任务
#
# Signals:
#   - KuFlow_Engine_SignalProcessItem(signal): KuFlow 任务完成通知

from decimal import Decimal
from uuid import UUID

from temporalio import workflow
from temporalio.exceptions import ApplicationError

from kuflow_samples.temporal.workflows.base import KuFlowWorkflowBase

with workflow.unsafe.imports_passed_through():
    from kuflow_samples.schemas.kuflow import (
        JsonPatchOperation,
        JsonPatchOperationType,
        Process,
        ProcessItem,
    )
    from kuflow_samples.services.currency import (
        CurrencyConversionError,
        format_amount,
        parse_amount,
    )
    from kuflow_samples.temporal.activities.currency import CurrencyConversionActivities
    from kuflow_samples.temporal.activities.kuflow import KuFlowActivities
    from kuflow_samples.temporal.types import (
        SIGNAL_PROCESS_ITEM,
        ProcessMetadataPatchRequest,
        SignalProcessItem,
        WorkflowRequest,
        WorkflowResponse,
    )


TASK_LOAN_APPLICATION = "LOAN_APPLICATION"
TASK_APPROVE_LOAN = "APPROVE_LOAN"
TASK_NOTIFICATION_GRANTED = "NOTIFICATION_GRANTED"
TASK_NOTIFICATION_REJECTION = "NOTIFICATION_REJECTION"

# 超过该金额（欧元）需要人工审批
APPROVAL_THRESHOLD_EUR = Decimal("5000")


# KuFlow 流程定义中配置的 Workflow 类型名
@workflow.defn(name="SampleEngineWorkerLoanWorkflow")
class LoanWorkflow(KuFlowWorkflowBase):
    """贷款申请工作流"""

    @workflow.run
    async def run(self, request: WorkflowRequest) -> WorkflowResponse:
        process_id = request.process_id
        workflow.logger.info(f"Started loan process {process_id}")

        loan_application = await self._create_task_and_wait(process_id, TASK_LOAN_APPLICATION)

        await self._update_process_metadata(process_id, loan_application)

        currency = loan_application.task_value("CURRENCY")
        amount = loan_application.task_value("AMOUNT", "0")
        amount_eur = await self._convert_to_euros(currency, amount)

        loan_authorized = True
        if amount_eur > APPROVAL_THRESHOLD_EUR:
            approve_loan = await self._create_task_and_wait(
                process_id,
                TASK_APPROVE_LOAN,
                {
                    "FIRST_NAME": loan_application.task_value("FIRST_NAME"),
                    "LAST_NAME": loan_application.task_value("LAST_NAME"),
                    "AMOUNT": format_amount(amount_eur),
                },
            )
            loan_authorized = approve_loan.task_value("APPROVAL") == "YES"

        process = await self._retrieve_process(request)
        notification = TASK_NOTIFICATION_GRANTED if loan_authorized else TASK_NOTIFICATION_REJECTION
        await self._create_task(process_id, notification, owner_id=process.initiator_id)

        workflow.logger.info(f"Finished loan process {process_id}: authorized={loan_authorized}")
        return WorkflowResponse(message=f"Complete process {process_id}")

    @workflow.signal(name=SIGNAL_PROCESS_ITEM)
    def kuflow_engine_signal_process_item(self, signal: SignalProcessItem) -> None:
        self._record_signal(signal)

    async def _update_process_metadata(self, process_id: UUID, loan_application: ProcessItem) -> None:
        """申请人姓名写入流程元数据"""
        json_patch = [
            JsonPatchOperation(
                op=JsonPatchOperationType.ADD,
                path=f"/{code}",
                value=loan_application.task_value(code),
            )
            for code in ("FIRST_NAME", "LAST_NAME")
        ]
        await workflow.execute_activity_method(
            KuFlowActivities.patch_process_metadata,
            ProcessMetadataPatchRequest(process_id=process_id, json_patch=json_patch),
            **self.activity_options,
        )

    async def _retrieve_process(self, request: WorkflowRequest) -> Process:
        return await workflow.execute_activity_method(
            KuFlowActivities.retrieve_process,
            request.process_id,
            **self.activity_options,
        )

    async def _convert_to_euros(self, currency: str, amount: str) -> Decimal:
        try:
            amount_number = parse_amount(amount)
        except CurrencyConversionError as e:
            raise ApplicationError(str(e), type="CurrencyConversion", non_retryable=True) from e

        if currency == "EUR":
            return amount_number

        amount_text = await workflow.execute_activity_method(
            CurrencyConversionActivities.convert,
            args=[format_amount(amount_number), currency, "EUR"],
            **self.activity_options,
        )
        return Decimal(amount_text)
