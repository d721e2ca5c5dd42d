# kuflow_samples/temporal/workflows/uivision.py
# UI.Vision 机器人工作流
#
# 创建 ROBOT_RESULTS 任务并由 Worker 认领，执行 UI.Vision 宏
# （执行日志写回任务），最后完成任务。
# Worker 和机器人是同一个应用，所以 Worker 本身就是任务的合法候选人。

from datetime import timedelta

from temporalio import workflow

from kuflow_samples.temporal.workflows.base import KuFlowWorkflowBase, default_activity_options

with workflow.unsafe.imports_passed_through():
    from kuflow_samples.temporal.activities.kuflow import KuFlowActivities
    from kuflow_samples.temporal.activities.uivision import UIVisionActivities
    from kuflow_samples.temporal.types import (
        SIGNAL_PROCESS_ITEM,
        ExecuteUIVisionMacroRequest,
        SignalProcessItem,
        WorkflowRequest,
        WorkflowResponse,
    )


TASK_ROBOT_RESULTS = "ROBOT_RESULTS"


@workflow.defn(name="UIVisionSampleWorkflow")
class UIVisionSampleWorkflow(KuFlowWorkflowBase):
    """UI.Vision 机器人工作流"""

    # 宏执行时间较长
    activity_options = default_activity_options(start_to_close=timedelta(minutes=15))

    @workflow.run
    async def run(self, request: WorkflowRequest) -> WorkflowResponse:
        process_id = request.process_id

        task_id = await self._create_task(process_id, TASK_ROBOT_RESULTS)

        await workflow.execute_activity_method(
            KuFlowActivities.claim_process_item_task,
            task_id,
            **self.activity_options,
        )

        await workflow.execute_activity_method(
            UIVisionActivities.execute_uivision_macro,
            ExecuteUIVisionMacroRequest(process_item_id=task_id),
            **self.activity_options,
        )

        await workflow.execute_activity_method(
            KuFlowActivities.complete_process_item_task,
            task_id,
            **self.activity_options,
        )

        workflow.logger.info(f"UiVision process finished. {process_id}")
        return WorkflowResponse(message=f"Complete process {process_id}")

    @workflow.signal(name=SIGNAL_PROCESS_ITEM)
    def kuflow_engine_signal_process_item(self, signal: SignalProcessItem) -> None:
        self._record_signal(signal)
