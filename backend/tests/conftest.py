# tests/conftest.py
# Pytest 配置文件
#
# 功能：
# 1. 把 backend 目录加入 Python 路径
# 2. 提供内存版 KuFlow 客户端（不发真实请求）
# 3. 提供通用 fixtures

import os
import sys
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID, uuid4

import pytest

# 将 backend 目录添加到 Python 路径
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from kuflow_samples.adapters.kuflow import KuFlowApiError  # noqa: E402
from kuflow_samples.schemas.kuflow import (  # noqa: E402
    JsonValue,
    Process,
    ProcessItem,
    ProcessItemCreateParams,
    ProcessItemTask,
    ProcessItemTaskLogLevel,
    ProcessItemTaskState,
    ProcessState,
    TaskDefinitionSummary,
)
from kuflow_samples.services.currency import parse_amount  # noqa: E402


# ==================== 工厂函数 ====================

def make_process_item(
    code: str,
    data: Optional[dict[str, Any]] = None,
    process_id: Optional[UUID] = None,
    process_item_id: Optional[UUID] = None,
    state: ProcessItemTaskState = ProcessItemTaskState.COMPLETED,
) -> ProcessItem:
    """创建一个带表单数据的任务"""
    return ProcessItem(
        id=process_item_id or uuid4(),
        process_id=process_id or uuid4(),
        task=ProcessItemTask(
            state=state,
            task_definition=TaskDefinitionSummary(code=code),
            data=JsonValue(value=data or {}),
        ),
    )


# ==================== 内存版 KuFlow 客户端 ====================

class FakeKuFlowRestClient:
    """
    内存版 KuFlowRestClient

    - created: 创建过的流程项参数
    - calls: 按顺序记录的调用 (方法名, 参数)
    - items: 可以预先放入的流程项，retrieve_process_item 从这里取
    - fail_with: 设置后，所有写操作抛出该状态码的 KuFlowApiError
    """

    def __init__(self, initiator_id: Optional[UUID] = None):
        self.initiator_id = initiator_id or uuid4()
        self.items: dict[UUID, ProcessItem] = {}
        self.created: list[ProcessItemCreateParams] = []
        self.calls: list[tuple[str, Any]] = []
        self.fail_with: Optional[int] = None

    def _check_failure(self) -> None:
        if self.fail_with is not None:
            raise KuFlowApiError(self.fail_with, {"message": "fake error"})

    async def retrieve_process(self, process_id: UUID) -> Process:
        self.calls.append(("retrieve_process", process_id))
        return Process(id=process_id, state=ProcessState.RUNNING, initiator_id=self.initiator_id)

    async def complete_process(self, process_id: UUID) -> Process:
        self._check_failure()
        self.calls.append(("complete_process", process_id))
        return Process(id=process_id, state=ProcessState.COMPLETED, initiator_id=self.initiator_id)

    async def create_process_item(self, params: ProcessItemCreateParams) -> ProcessItem:
        self._check_failure()
        self.calls.append(("create_process_item", params.task.task_definition_code))
        self.created.append(params)
        item = ProcessItem(
            id=params.id or uuid4(),
            process_id=params.process_id,
            owner_id=params.owner_id,
            task=ProcessItemTask(
                state=ProcessItemTaskState.READY,
                task_definition=TaskDefinitionSummary(code=params.task.task_definition_code),
                data=params.task.data,
            ),
        )
        self.items[item.id] = item
        return item

    async def retrieve_process_item(self, process_item_id: UUID) -> ProcessItem:
        self.calls.append(("retrieve_process_item", process_item_id))
        return self.items[process_item_id]

    async def assign_process_item_task(self, process_item_id: UUID, owner_id: UUID) -> ProcessItem:
        self._check_failure()
        self.calls.append(("assign_process_item_task", (process_item_id, owner_id)))
        return self.items[process_item_id]

    async def append_process_item_task_log(
        self,
        process_item_id: UUID,
        message: str,
        level: ProcessItemTaskLogLevel = ProcessItemTaskLogLevel.INFO,
    ) -> ProcessItem:
        self.calls.append(("append_process_item_task_log", (message, level)))
        return self.items.get(process_item_id) or make_process_item("ANY", process_item_id=process_item_id)

    def created_codes(self) -> list[str]:
        return [params.task.task_definition_code for params in self.created]


class FakeCurrencyConverter:
    """固定汇率的换算器，rate 表示 1 单位外币 = rate 欧元"""

    def __init__(self, rate: str = "1"):
        self.rate = Decimal(rate)
        self.calls: list[tuple] = []

    async def convert_to_euros(self, currency, amount_text):
        self.calls.append((currency, amount_text))
        amount = parse_amount(amount_text)
        if currency == "EUR":
            return amount
        return amount * self.rate


# ==================== Fixtures ====================

@pytest.fixture
def fake_rest_client():
    """内存版 KuFlow 客户端"""
    return FakeKuFlowRestClient()


@pytest.fixture
def fake_converter():
    """1 外币 = 1 欧元"""
    return FakeCurrencyConverter()
