# kuflow_samples/adapters/kuflow.py
# KuFlow REST API 客户端
#
# 功能说明：
# 1. KuFlowRestClient - 封装示例用到的 KuFlow REST API 调用
# 2. KuFlowApiError - API 返回非 2xx 时抛出，携带 HTTP 状态码
#
# 认证方式：HTTP Basic（应用的 Client ID / Client Secret）
#
# API 参考：
# https://docs.kuflow.com/developers/api/

from typing import Any, Optional
from uuid import UUID

import httpx

from kuflow_samples.core.config import settings
from kuflow_samples.core.logging import get_logger
from kuflow_samples.schemas.kuflow import (
    Authentication,
    JsonPatchOperation,
    Process,
    ProcessItem,
    ProcessItemCreateParams,
    ProcessItemTaskLog,
    ProcessItemTaskLogLevel,
)

logger = get_logger(__name__)


class KuFlowApiError(Exception):
    """
    KuFlow API 错误

    Attributes:
        status: HTTP 状态码
        body: KuFlow 返回的错误详情（通常包含 code / message / errors）
    """

    def __init__(self, status: int, body: Any = None, message: Optional[str] = None):
        self.status = status
        self.body = body
        if message is None:
            detail = body.get("message") if isinstance(body, dict) else body
            message = f"KuFlow API 错误 {status}: {detail}"
        super().__init__(message)


class KuFlowRestClient:
    """
    KuFlow REST API 客户端

    使用方法：
        client = KuFlowRestClient(
            client_id="xxx",
            client_secret="xxx",
        )

        process = await client.retrieve_process(process_id)
        item = await client.create_process_item(params)

        await client.aclose()
    """

    PROCESSES_URL = "/processes"
    PROCESS_ITEMS_URL = "/process-items"
    AUTHENTICATIONS_URL = "/authentications"

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        endpoint: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """
        初始化 KuFlow 客户端

        Args:
            client_id: 应用 Client ID，默认读取配置
            client_secret: 应用 Client Secret，默认读取配置
            endpoint: API 地址，默认读取配置
            timeout: 请求超时（秒），默认读取配置
        """
        self.client_id = client_id if client_id is not None else settings.KUFLOW_CLIENT_ID
        self.client_secret = (
            client_secret if client_secret is not None else settings.KUFLOW_CLIENT_SECRET
        )
        self.endpoint = (endpoint or settings.KUFLOW_API_ENDPOINT).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.KUFLOW_API_TIMEOUT
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """底层 httpx 客户端（惰性创建，连接复用）"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.endpoint,
                auth=httpx.BasicAuth(self.client_id, self.client_secret),
                timeout=self.timeout,
                headers={"Accept": "application/json"},
            )
        return self._client

    async def aclose(self) -> None:
        """关闭底层连接"""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        url: str,
        json_data: Any = None,
        headers: Optional[dict] = None,
    ) -> Any:
        """
        发送 API 请求

        Returns:
            Any: 解析后的 JSON 响应，无响应体时返回 None

        Raises:
            KuFlowApiError: 响应状态码非 2xx
        """
        logger.debug(f"[KuFlow] {method} {url}")
        response = await self.client.request(method, url, json=json_data, headers=headers)

        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = response.text
            logger.warning(f"[KuFlow] {method} {url} -> {response.status_code}")
            raise KuFlowApiError(response.status_code, body)

        if not response.content:
            return None
        return response.json()

    # ==================== 认证 ====================

    async def create_engine_token(self) -> Authentication:
        """
        申请 Temporal 引擎访问令牌

        Returns:
            Authentication: 包含 token 和过期时间
        """
        data = await self._request(
            "POST",
            self.AUTHENTICATIONS_URL,
            json_data={"type": "ENGINE_TOKEN"},
        )
        return Authentication.model_validate(data)

    # ==================== 流程 ====================

    async def retrieve_process(self, process_id: UUID) -> Process:
        """获取流程"""
        data = await self._request("GET", f"{self.PROCESSES_URL}/{process_id}")
        return Process.model_validate(data)

    async def complete_process(self, process_id: UUID) -> Process:
        """完成流程"""
        data = await self._request(
            "POST", f"{self.PROCESSES_URL}/{process_id}/~actions/complete"
        )
        return Process.model_validate(data)

    async def patch_process_metadata(
        self,
        process_id: UUID,
        json_patch: list[JsonPatchOperation],
    ) -> Process:
        """
        用 JSON Patch 修改流程元数据

        Args:
            process_id: 流程 ID
            json_patch: JSON Patch 操作列表（如 add /FIRST_NAME）
        """
        data = await self._request(
            "POST",
            f"{self.PROCESSES_URL}/{process_id}/metadata/~actions/patch",
            json_data=[op.model_dump(mode="json", exclude_none=True) for op in json_patch],
            headers={"Content-Type": "application/json-patch+json"},
        )
        return Process.model_validate(data)

    # ==================== 流程项 ====================

    async def create_process_item(self, params: ProcessItemCreateParams) -> ProcessItem:
        """创建流程项（任务）"""
        data = await self._request(
            "POST",
            self.PROCESS_ITEMS_URL,
            json_data=params.model_dump(mode="json", exclude_none=True),
        )
        return ProcessItem.model_validate(data)

    async def retrieve_process_item(self, process_item_id: UUID) -> ProcessItem:
        """获取流程项"""
        data = await self._request("GET", f"{self.PROCESS_ITEMS_URL}/{process_item_id}")
        return ProcessItem.model_validate(data)

    async def claim_process_item_task(self, process_item_id: UUID) -> ProcessItem:
        """认领任务（当前应用成为任务负责人）"""
        data = await self._request(
            "POST", f"{self.PROCESS_ITEMS_URL}/{process_item_id}/~actions/task-claim"
        )
        return ProcessItem.model_validate(data)

    async def complete_process_item_task(self, process_item_id: UUID) -> ProcessItem:
        """完成任务"""
        data = await self._request(
            "POST", f"{self.PROCESS_ITEMS_URL}/{process_item_id}/~actions/task-complete"
        )
        return ProcessItem.model_validate(data)

    async def assign_process_item_task(
        self,
        process_item_id: UUID,
        owner_id: UUID,
    ) -> ProcessItem:
        """把任务分配给指定负责人"""
        data = await self._request(
            "POST",
            f"{self.PROCESS_ITEMS_URL}/{process_item_id}/~actions/task-assign",
            json_data={"ownerId": str(owner_id)},
        )
        return ProcessItem.model_validate(data)

    async def append_process_item_task_log(
        self,
        process_item_id: UUID,
        message: str,
        level: ProcessItemTaskLogLevel = ProcessItemTaskLogLevel.INFO,
    ) -> ProcessItem:
        """
        追加任务日志

        日志会显示在 KuFlow 应用的任务详情中，用于给用户反馈执行进度
        """
        log = ProcessItemTaskLog(level=level, message=message)
        data = await self._request(
            "POST",
            f"{self.PROCESS_ITEMS_URL}/{process_item_id}/~actions/task-append-log",
            json_data=log.model_dump(mode="json", exclude_none=True),
        )
        return ProcessItem.model_validate(data)
