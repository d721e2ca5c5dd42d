# kuflow_samples/schemas/kuflow.py
# KuFlow API 数据模型
#
# 功能说明：
# 1. 定义示例中用到的 KuFlow REST API 资源（流程、流程项、任务）
# 2. 定义 Webhook 事件模型及解析函数
#
# 约定：
# - KuFlow API 使用 camelCase 字段名，Python 侧统一使用 snake_case 属性，
#   通过 alias_generator 自动映射
# - 序列化时默认输出 camelCase（serialize_by_alias），
#   这样同一个模型既能发给 KuFlow API，也能作为 Temporal Payload

from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class KuFlowModel(BaseModel):
    """KuFlow 模型基类：camelCase 别名 + 保留未知字段"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        serialize_by_alias=True,
        extra="allow",
    )


# ==================== 枚举 ====================

class ProcessState(str, Enum):
    """流程状态"""
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ProcessItemType(str, Enum):
    """流程项类型"""
    TASK = "TASK"
    MESSAGE = "MESSAGE"
    THREAD = "THREAD"


class ProcessItemTaskState(str, Enum):
    """任务状态"""
    READY = "READY"
    CLAIMED = "CLAIMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ProcessItemTaskLogLevel(str, Enum):
    """任务日志级别"""
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class JsonPatchOperationType(str, Enum):
    """JSON Patch 操作类型（RFC 6902）"""
    ADD = "add"
    REMOVE = "remove"
    REPLACE = "replace"
    MOVE = "move"
    COPY = "copy"
    TEST = "test"


# ==================== 通用结构 ====================

class JsonValue(KuFlowModel):
    """KuFlow 的 JSON 数据容器，实际数据在 value 中"""
    value: dict[str, Any] = Field(default_factory=dict)


class JsonPatchOperation(KuFlowModel):
    """单个 JSON Patch 操作"""
    op: JsonPatchOperationType
    path: str
    value: Any = None
    from_: Optional[str] = Field(default=None, alias="from")


# ==================== 流程 ====================

class Process(KuFlowModel):
    """KuFlow 流程"""
    id: UUID
    state: Optional[ProcessState] = None
    initiator_id: Optional[UUID] = None
    metadata: Optional[JsonValue] = None


# ==================== 流程项 / 任务 ====================

class TaskDefinitionSummary(KuFlowModel):
    """任务定义摘要"""
    code: str
    id: Optional[UUID] = None
    version: Optional[UUID] = None
    name: Optional[str] = None


class ProcessItemTask(KuFlowModel):
    """流程项中的任务部分"""
    state: Optional[ProcessItemTaskState] = None
    task_definition: Optional[TaskDefinitionSummary] = None
    data: Optional[JsonValue] = None


class ProcessItem(KuFlowModel):
    """
    KuFlow 流程项

    示例中只用到 TASK 类型，任务表单填写的数据在 task.data.value 中，
    例如贷款申请表单：{"FIRST_NAME": "...", "CURRENCY": "USD", "AMOUNT": "6000"}
    """
    id: UUID
    type: ProcessItemType = ProcessItemType.TASK
    process_id: UUID
    owner_id: Optional[UUID] = None
    task: Optional[ProcessItemTask] = None

    def task_value(self, code: str, default: Optional[str] = None) -> Optional[str]:
        """
        读取任务表单字段的文本值

        Args:
            code: 表单字段编码（如 "AMOUNT"）
            default: 字段不存在或为 null 时返回的默认值

        Returns:
            Optional[str]: 字段值的字符串形式
        """
        if self.task is None or self.task.data is None:
            return default
        value = self.task.data.value.get(code)
        if value is None:
            return default
        return str(value)


class ProcessItemTaskCreateParams(KuFlowModel):
    """创建任务时的任务参数"""
    task_definition_code: str
    data: Optional[JsonValue] = None


class ProcessItemCreateParams(KuFlowModel):
    """创建流程项的参数"""
    id: Optional[UUID] = None
    type: ProcessItemType = ProcessItemType.TASK
    process_id: UUID
    owner_id: Optional[UUID] = None
    task: Optional[ProcessItemTaskCreateParams] = None


class ProcessItemTaskLog(KuFlowModel):
    """任务日志条目"""
    id: Optional[UUID] = None
    level: ProcessItemTaskLogLevel = ProcessItemTaskLogLevel.INFO
    message: str
    created_at: Optional[datetime] = None


# ==================== 认证 ====================

class Authentication(KuFlowModel):
    """
    KuFlow 认证结果

    type=ENGINE_TOKEN 时，token 用于连接 KuFlow 提供的 Temporal 服务
    """
    id: Optional[UUID] = None
    type: str = "ENGINE_TOKEN"
    token: Optional[str] = None
    expired_at: Optional[datetime] = None


# ==================== Webhook 事件 ====================

class WebhookType(str, Enum):
    """示例中处理的 Webhook 事件类型"""
    PROCESS_STATE_CHANGED = "PROCESS.STATE_CHANGED"
    PROCESS_ITEM_TASK_STATE_CHANGED = "PROCESS_ITEM.TASK_STATE_CHANGED"


class WebhookEvent(KuFlowModel):
    """Webhook 事件基类，未识别的事件类型也解析为此类"""
    id: UUID
    type: str
    timestamp: Optional[datetime] = None
    data: Optional[dict[str, Any]] = None


class WebhookEventProcessStateChangedData(KuFlowModel):
    process_id: UUID
    process_state: ProcessState


class WebhookEventProcessStateChanged(WebhookEvent):
    """流程状态变更事件"""
    data: WebhookEventProcessStateChangedData


class WebhookEventProcessItemTaskStateChangedData(KuFlowModel):
    process_id: UUID
    process_item_id: UUID
    process_item_type: ProcessItemType = ProcessItemType.TASK
    process_item_task_code: str
    process_item_state: ProcessItemTaskState


class WebhookEventProcessItemTaskStateChanged(WebhookEvent):
    """任务状态变更事件"""
    data: WebhookEventProcessItemTaskStateChangedData


WEBHOOK_EVENT_TYPES: dict[str, type[WebhookEvent]] = {
    WebhookType.PROCESS_STATE_CHANGED.value: WebhookEventProcessStateChanged,
    WebhookType.PROCESS_ITEM_TASK_STATE_CHANGED.value: WebhookEventProcessItemTaskStateChanged,
}


def parse_webhook_event(
    payload: Union[str, bytes, dict[str, Any]],
) -> WebhookEvent:
    """
    解析 KuFlow Webhook 请求体

    根据 type 字段选择具体的事件模型，未知类型返回通用 WebhookEvent

    Args:
        payload: 原始 JSON 文本或已解析的字典

    Returns:
        WebhookEvent: 事件对象

    Raises:
        pydantic.ValidationError: 请求体格式不正确
    """
    if isinstance(payload, (str, bytes)):
        event = WebhookEvent.model_validate_json(payload)
        raw = payload
    else:
        event = WebhookEvent.model_validate(payload)
        raw = None

    event_class = WEBHOOK_EVENT_TYPES.get(event.type)
    if event_class is None:
        return event

    if raw is not None:
        return event_class.model_validate_json(raw)
    return event_class.model_validate(payload)
