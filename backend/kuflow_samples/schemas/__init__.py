# kuflow_samples/schemas/__init__.py
# Pydantic Schema 包
#
# 这个文件用于导出常用 Schema，方便其他模块导入
# 使用方式：from kuflow_samples.schemas import ProcessItem, parse_webhook_event

from kuflow_samples.schemas.kuflow import (
    Authentication,
    JsonPatchOperation,
    JsonPatchOperationType,
    JsonValue,
    KuFlowModel,
    Process,
    ProcessItem,
    ProcessItemCreateParams,
    ProcessItemTaskCreateParams,
    ProcessItemTaskLogLevel,
    ProcessItemTaskState,
    ProcessState,
    WebhookEvent,
    WebhookEventProcessItemTaskStateChanged,
    WebhookEventProcessStateChanged,
    parse_webhook_event,
)

__all__ = [
    # 基础
    "KuFlowModel",
    "JsonValue",
    "JsonPatchOperation",
    "JsonPatchOperationType",
    "Authentication",
    # 流程 / 任务
    "Process",
    "ProcessState",
    "ProcessItem",
    "ProcessItemCreateParams",
    "ProcessItemTaskCreateParams",
    "ProcessItemTaskLogLevel",
    "ProcessItemTaskState",
    # Webhook
    "WebhookEvent",
    "WebhookEventProcessStateChanged",
    "WebhookEventProcessItemTaskStateChanged",
    "parse_webhook_event",
]
