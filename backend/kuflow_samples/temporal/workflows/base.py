# kuflow_samples/temporal/workflows/base.py
# KuFlow 示例 Workflow 公共部分
#
# KuFlow 中的任务是异步完成的：Workflow 创建任务后，用户在 KuFlow
# 界面中填写并提交，KuFlow 引擎随即向 Workflow 发送
# KuFlow_Engine_SignalProcessItem 信号。子类在信号处理函数中调用
# _record_signal()，再用 _create_task_and_wait() 等待任务完成。

from datetime import timedelta
from typing import Any, Optional
from uuid import UUID

from temporalio import workflow
from temporalio.common import RetryPolicy

with workflow.unsafe.imports_passed_through():
    from kuflow_samples.schemas.kuflow import (
        JsonValue,
        ProcessItem,
        ProcessItemCreateParams,
        ProcessItemTaskCreateParams,
        ProcessItemType,
    )
    from kuflow_samples.temporal.activities.kuflow import KuFlowActivities
    from kuflow_samples.temporal.types import SignalProcessItem, SignalProcessItemType


def default_activity_options(start_to_close: timedelta = timedelta(minutes=10)) -> dict:
    """默认 Activity 选项：单次执行超时 + 最长一年的总时限 + 默认重试策略"""
    return {
        "start_to_close_timeout": start_to_close,
        "schedule_to_close_timeout": timedelta(days=365),
        "retry_policy": RetryPolicy(),
    }


class KuFlowWorkflowBase:
    """KuFlow Workflow 基类（不是 Workflow 本身，子类需要加 @workflow.defn）"""

    activity_options: dict = default_activity_options()

    def __init__(self):
        self._completed_task_ids: set[UUID] = set()

    def _record_signal(self, signal: SignalProcessItem) -> None:
        """记录已完成的任务"""
        if signal.type == SignalProcessItemType.TASK:
            self._completed_task_ids.add(signal.id)

    async def _create_task(
        self,
        process_id: UUID,
        task_definition_code: str,
        data: Optional[dict[str, Any]] = None,
        owner_id: Optional[UUID] = None,
    ) -> UUID:
        """
        创建任务

        任务 ID 由 workflow.uuid4() 生成，重放时保持不变

        Returns:
            UUID: 任务（流程项）ID
        """
        process_item_id = workflow.uuid4()
        params = ProcessItemCreateParams(
            id=process_item_id,
            type=ProcessItemType.TASK,
            process_id=process_id,
            owner_id=owner_id,
            task=ProcessItemTaskCreateParams(
                task_definition_code=task_definition_code,
                data=JsonValue(value=data) if data else None,
            ),
        )
        await workflow.execute_activity_method(
            KuFlowActivities.create_process_item,
            params,
            **self.activity_options,
        )
        return process_item_id

    async def _retrieve_task(self, process_item_id: UUID) -> ProcessItem:
        return await workflow.execute_activity_method(
            KuFlowActivities.retrieve_process_item,
            process_item_id,
            **self.activity_options,
        )

    async def _create_task_and_wait(
        self,
        process_id: UUID,
        task_definition_code: str,
        data: Optional[dict[str, Any]] = None,
    ) -> ProcessItem:
        """创建任务，等待用户完成后返回最新的任务数据"""
        process_item_id = await self._create_task(process_id, task_definition_code, data)

        workflow.logger.info(f"等待任务完成: {task_definition_code} ({process_item_id})")
        await workflow.wait_condition(lambda: process_item_id in self._completed_task_ids)

        return await self._retrieve_task(process_item_id)
