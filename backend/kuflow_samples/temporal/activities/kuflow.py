# kuflow_samples/temporal/activities/kuflow.py
# KuFlow API 相关的 Temporal Activities
#
# Workflow 不能直接发起网络请求，所有对 KuFlow REST API 的调用
# 都通过这里的 Activity 完成，由 Temporal 负责超时和重试。
#
# Activity 名称使用 KuFlow_Engine_ 前缀，避免与其他 Activity 冲突。
#
# 在 Workflow 中调用：
#   await workflow.execute_activity_method(
#       KuFlowActivities.create_process_item, params, ...
#   )

from uuid import UUID

from temporalio import activity

from kuflow_samples.adapters.kuflow import KuFlowRestClient
from kuflow_samples.schemas.kuflow import Process, ProcessItem, ProcessItemCreateParams
from kuflow_samples.temporal.types import (
    ProcessItemTaskAppendLogRequest,
    ProcessItemTaskAssignRequest,
    ProcessMetadataPatchRequest,
)


class KuFlowActivities:
    """
    KuFlow Activities

    持有一个 KuFlowRestClient，Worker 启动时创建实例并注册所有方法：
        kuflow_activities = KuFlowActivities(rest_client)
        Worker(..., activities=kuflow_activities.all())
    """

    def __init__(self, rest_client: KuFlowRestClient):
        self.rest_client = rest_client

    def all(self) -> list:
        """返回需要注册到 Worker 的全部 Activity"""
        return [
            self.retrieve_process,
            self.complete_process,
            self.patch_process_metadata,
            self.create_process_item,
            self.retrieve_process_item,
            self.claim_process_item_task,
            self.complete_process_item_task,
            self.assign_process_item_task,
            self.append_process_item_task_log,
        ]

    # ==================== 流程 ====================

    @activity.defn(name="KuFlow_Engine_retrieveProcess")
    async def retrieve_process(self, process_id: UUID) -> Process:
        return await self.rest_client.retrieve_process(process_id)

    @activity.defn(name="KuFlow_Engine_completeProcess")
    async def complete_process(self, process_id: UUID) -> Process:
        activity.logger.info(f"完成流程: process_id={process_id}")
        return await self.rest_client.complete_process(process_id)

    @activity.defn(name="KuFlow_Engine_patchProcessMetadata")
    async def patch_process_metadata(self, request: ProcessMetadataPatchRequest) -> Process:
        return await self.rest_client.patch_process_metadata(request.process_id, request.json_patch)

    # ==================== 流程项 ====================

    @activity.defn(name="KuFlow_Engine_createProcessItem")
    async def create_process_item(self, params: ProcessItemCreateParams) -> ProcessItem:
        """
        创建流程项

        params.id 由 Workflow 用 workflow.uuid4() 预先生成，
        重试时 KuFlow 会按 id 去重，保证同一个任务只创建一次
        """
        code = params.task.task_definition_code if params.task else None
        activity.logger.info(f"创建任务: id={params.id}, code={code}")
        return await self.rest_client.create_process_item(params)

    @activity.defn(name="KuFlow_Engine_retrieveProcessItem")
    async def retrieve_process_item(self, process_item_id: UUID) -> ProcessItem:
        return await self.rest_client.retrieve_process_item(process_item_id)

    @activity.defn(name="KuFlow_Engine_claimProcessItemTask")
    async def claim_process_item_task(self, process_item_id: UUID) -> ProcessItem:
        return await self.rest_client.claim_process_item_task(process_item_id)

    @activity.defn(name="KuFlow_Engine_completeProcessItemTask")
    async def complete_process_item_task(self, process_item_id: UUID) -> ProcessItem:
        return await self.rest_client.complete_process_item_task(process_item_id)

    @activity.defn(name="KuFlow_Engine_assignProcessItemTask")
    async def assign_process_item_task(self, request: ProcessItemTaskAssignRequest) -> ProcessItem:
        return await self.rest_client.assign_process_item_task(
            request.process_item_id, request.owner_id
        )

    @activity.defn(name="KuFlow_Engine_appendProcessItemTaskLog")
    async def append_process_item_task_log(
        self,
        request: ProcessItemTaskAppendLogRequest,
    ) -> ProcessItem:
        return await self.rest_client.append_process_item_task_log(
            request.process_item_id, request.message, request.level
        )
