# kuflow_samples/temporal/types.py
# Workflow / Activity 共享数据类型
#
# 这个文件定义了 Workflow 和 Activity 之间传递的数据类型，
# 以及 KuFlow 引擎与 Worker 之间约定的输入输出格式。
#
# 注意：这个文件会在 Workflow 沙箱中导入，不应该导入任何包含
# 非确定性操作的模块（如 logging、httpx、pathlib 等）
#
# 所有模型继承 KuFlowModel，Payload 中使用 camelCase 字段名，
# 与 KuFlow 引擎发送的 JSON 保持一致。

from enum import Enum
from typing import Any, Optional
from uuid import UUID

from pydantic import Field

from kuflow_samples.schemas.kuflow import (
    JsonPatchOperation,
    KuFlowModel,
    ProcessItemTaskLogLevel,
)


# KuFlow 引擎在任务状态变化时发送给 Workflow 的 Signal 名称
SIGNAL_PROCESS_ITEM = "KuFlow_Engine_SignalProcessItem"


# ==================== Workflow 输入输出 ====================

class WorkflowRequest(KuFlowModel):
    """
    KuFlow 启动流程时传给 Workflow 的参数

    Attributes:
        process_id: KuFlow 流程 ID
    """
    process_id: UUID


class WorkflowResponse(KuFlowModel):
    """Workflow 返回值"""
    message: str


# ==================== Signal ====================

class SignalProcessItemType(str, Enum):
    """Signal 关联的流程项类型"""
    TASK = "TASK"
    MESSAGE = "MESSAGE"
    THREAD = "THREAD"


class SignalProcessItem(KuFlowModel):
    """
    流程项 Signal

    KuFlow 中的任务完成后，引擎会向对应 Workflow 发送此 Signal
    """
    id: UUID
    type: SignalProcessItemType = SignalProcessItemType.TASK
    data: Optional[dict[str, Any]] = None


# ==================== KuFlow Activity 请求 ====================

class ProcessItemTaskAssignRequest(KuFlowModel):
    """分配任务负责人"""
    process_item_id: UUID
    owner_id: UUID


class ProcessItemTaskAppendLogRequest(KuFlowModel):
    """追加任务日志"""
    process_item_id: UUID
    message: str
    level: ProcessItemTaskLogLevel = ProcessItemTaskLogLevel.INFO


class ProcessMetadataPatchRequest(KuFlowModel):
    """用 JSON Patch 修改流程元数据"""
    process_id: UUID
    json_patch: list[JsonPatchOperation]


# ==================== 数据源（DataSource） ====================

class DataSourceActivityRequest(KuFlowModel):
    """
    KuFlow 调用数据源 Activity 时的公共字段

    Attributes:
        tenant_id: 租户 ID
        code: 数据源编码（表单中配置）
    """
    tenant_id: Optional[UUID] = None
    code: Optional[str] = None


class DataSourceQueryRequest(DataSourceActivityRequest):
    """
    数据源查询请求

    Attributes:
        query: 用户在下拉框中输入的过滤文本
        page_number: 页码（从 0 开始），必填
        page_size: 每页条数，必填
        context: 表单上下文
    """
    query: Optional[str] = None
    page_number: Optional[int] = None
    page_size: Optional[int] = None
    context: Optional[dict[str, Any]] = None


class DataSourceQueryResponse(KuFlowModel):
    """数据源查询结果（分页）"""
    page_number: int
    page_size: int
    total_elements: int
    total_pages: int
    items: list[dict[str, Any]] = Field(default_factory=list)
    error: Optional[str] = None


class DataSourceValidateValueRequest(DataSourceActivityRequest):
    """数据源取值校验请求，values 是表单中已选中的值"""
    values: list[Any] = Field(default_factory=list)


class DataSourceValidateValueResult(KuFlowModel):
    """单个取值的校验结果"""
    valid: bool
    message: Optional[str] = None


class DataSourceValidateValueResponse(KuFlowModel):
    """取值校验结果，与请求中的 values 一一对应"""
    validations: list[DataSourceValidateValueResult] = Field(default_factory=list)


# ==================== 邮件 ====================

class Email(KuFlowModel):
    """
    邮件

    Attributes:
        template: 模板名称（不含扩展名），对应 templates/<template>.html
        to: 收件人
        variables: 模板变量，subject 同时作为邮件主题
    """
    template: str
    to: str
    variables: dict[str, Any] = Field(default_factory=dict)


class SendMailRequest(KuFlowModel):
    email: Email


# ==================== UI.Vision ====================

class ExecuteUIVisionMacroRequest(KuFlowModel):
    """执行 UI.Vision 宏，执行日志会追加到 process_item_id 对应的任务"""
    process_item_id: UUID
