# kuflow_samples/temporal/workflows/email.py
# 邮件通知工作流
#
# 流程：
# 1. 创建 FILL_INFO 任务，等待用户填写收件人、主题、正文
# 2. 创建自动任务 SEND_EMAIL 并由 Worker 认领，发送邮件，
#    过程日志写到任务上，然后完成任务
# 3. 完成流程
#
# Signals:
#   - KuFlow_Engine_SignalProcessItem(signal): KuFlow 任务完成通知

from uuid import UUID

from temporalio import workflow

from kuflow_samples.temporal.workflows.base import KuFlowWorkflowBase

with workflow.unsafe.imports_passed_through():
    from kuflow_samples.schemas.kuflow import ProcessItem
    from kuflow_samples.temporal.activities.email import EmailActivities
    from kuflow_samples.temporal.activities.kuflow import KuFlowActivities
    from kuflow_samples.temporal.types import (
        SIGNAL_PROCESS_ITEM,
        Email,
        ProcessItemTaskAppendLogRequest,
        SendMailRequest,
        SignalProcessItem,
        WorkflowRequest,
        WorkflowResponse,
    )


TASK_FILL_INFO = "FILL_INFO"
TASK_SEND_EMAIL = "SEND_EMAIL"

EMAIL_TEMPLATE = "email"


# KuFlow 流程定义中配置的 Workflow 类型名
@workflow.defn(name="SampleWorkflow")
class EmailWorkflow(KuFlowWorkflowBase):
    """邮件通知工作流"""

    @workflow.run
    async def run(self, request: WorkflowRequest) -> WorkflowResponse:
        process_id = request.process_id
        workflow.logger.info(f"Started email process {process_id}")

        fill_info = await self._create_task_and_wait(process_id, TASK_FILL_INFO)

        await self._send_email(process_id, fill_info)

        process = await workflow.execute_activity_method(
            KuFlowActivities.complete_process,
            process_id,
            **self.activity_options,
        )

        return WorkflowResponse(message=f"Completed process {process.id}")

    @workflow.signal(name=SIGNAL_PROCESS_ITEM)
    def kuflow_engine_signal_process_item(self, signal: SignalProcessItem) -> None:
        self._record_signal(signal)

    async def _send_email(self, process_id: UUID, fill_info: ProcessItem) -> None:
        """
        用 FILL_INFO 任务中的数据发送邮件

        SEND_EMAIL 是自动任务，由 Worker 自己认领和完成，
        仅用于在 KuFlow 界面中展示发送过程
        """
        task_id = await self._create_task(process_id, TASK_SEND_EMAIL)

        await workflow.execute_activity_method(
            KuFlowActivities.claim_process_item_task,
            task_id,
            **self.activity_options,
        )

        email = Email(
            template=EMAIL_TEMPLATE,
            to=fill_info.task_value("EMAIL_RECIPIENT", ""),
            variables={
                "subject": fill_info.task_value("EMAIL_SUBJECT", ""),
                "body": fill_info.task_value("EMAIL_BODY", ""),
            },
        )

        await self._append_log(task_id, f"Sending email to {email.to}")

        await workflow.execute_activity_method(
            EmailActivities.send_mail,
            SendMailRequest(email=email),
            **self.activity_options,
        )

        await self._append_log(task_id, "Email sent!")

        await workflow.execute_activity_method(
            KuFlowActivities.complete_process_item_task,
            task_id,
            **self.activity_options,
        )

    async def _append_log(self, task_id: UUID, message: str) -> None:
        await workflow.execute_activity_method(
            KuFlowActivities.append_process_item_task_log,
            ProcessItemTaskAppendLogRequest(process_item_id=task_id, message=message),
            **self.activity_options,
        )
