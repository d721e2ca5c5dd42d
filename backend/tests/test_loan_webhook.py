# tests/test_loan_webhook.py
# 贷款流程 Webhook 处理器 + /webhooks 端点测试
#
# 运行方式：
#   pytest tests/test_loan_webhook.py -v
#
# 使用内存版 KuFlow 客户端，不需要网络

import json
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from conftest import FakeCurrencyConverter, make_process_item
from kuflow_samples.adapters.kuflow import KuFlowApiError
from kuflow_samples.api.webhooks import get_loan_webhook_handler
from kuflow_samples.main import app
from kuflow_samples.schemas.kuflow import (
    WebhookEvent,
    WebhookEventProcessItemTaskStateChanged,
    WebhookEventProcessStateChanged,
    parse_webhook_event,
)
from kuflow_samples.services.currency import CurrencyConverter
from kuflow_samples.services.loan_webhook import LoanWebhookHandler


# ==================== 事件工厂 ====================

def process_state_changed(process_id, state="RUNNING") -> dict:
    return {
        "id": str(uuid4()),
        "type": "PROCESS.STATE_CHANGED",
        "timestamp": "2024-06-14T10:00:00Z",
        "data": {"processId": str(process_id), "processState": state},
    }


def task_state_changed(process_id, process_item_id, code, state="COMPLETED") -> dict:
    return {
        "id": str(uuid4()),
        "type": "PROCESS_ITEM.TASK_STATE_CHANGED",
        "timestamp": "2024-06-14T10:00:00Z",
        "data": {
            "processId": str(process_id),
            "processItemId": str(process_item_id),
            "processItemType": "TASK",
            "processItemTaskCode": code,
            "processItemState": state,
        },
    }


# ==================== 事件解析 ====================

def test_parse_process_state_changed():
    process_id = uuid4()
    event = parse_webhook_event(json.dumps(process_state_changed(process_id)))

    assert isinstance(event, WebhookEventProcessStateChanged)
    assert event.data.process_id == process_id
    assert event.data.process_state == "RUNNING"


def test_parse_task_state_changed_from_dict():
    payload = task_state_changed(uuid4(), uuid4(), "LOAN_APPLICATION")
    event = parse_webhook_event(payload)

    assert isinstance(event, WebhookEventProcessItemTaskStateChanged)
    assert event.data.process_item_task_code == "LOAN_APPLICATION"


def test_parse_unknown_event_is_generic():
    payload = {"id": str(uuid4()), "type": "PROCESS_ITEM.CREATED", "data": {"foo": "bar"}}
    event = parse_webhook_event(payload)

    assert type(event) is WebhookEvent
    assert event.data == {"foo": "bar"}


# ==================== 处理器 ====================

@pytest.mark.asyncio
async def test_running_process_creates_loan_application(fake_rest_client, fake_converter):
    handler = LoanWebhookHandler(fake_rest_client, fake_converter)
    process_id = uuid4()

    await handler.handle(parse_webhook_event(process_state_changed(process_id)))

    assert fake_rest_client.created_codes() == ["LOAN_APPLICATION"]
    assert fake_rest_client.created[0].process_id == process_id


@pytest.mark.asyncio
async def test_completed_process_is_ignored(fake_rest_client, fake_converter):
    handler = LoanWebhookHandler(fake_rest_client, fake_converter)

    await handler.handle(parse_webhook_event(process_state_changed(uuid4(), "COMPLETED")))

    assert fake_rest_client.created == []


@pytest.mark.asyncio
async def test_small_loan_is_granted_directly(fake_rest_client, fake_converter):
    """5000 欧元以内直接发放：通知分配给发起人并完成流程"""
    process_id = uuid4()
    application = make_process_item(
        "LOAN_APPLICATION",
        {"FIRST_NAME": "Ana", "LAST_NAME": "Ruiz", "CURRENCY": "EUR", "AMOUNT": "5000"},
        process_id=process_id,
    )
    fake_rest_client.items[application.id] = application
    handler = LoanWebhookHandler(fake_rest_client, fake_converter)

    await handler.handle(parse_webhook_event(
        task_state_changed(process_id, application.id, "LOAN_APPLICATION")
    ))

    assert fake_rest_client.created_codes() == ["NOTIFICATION_GRANTED"]
    notification_id = next(
        item_id for item_id, item in fake_rest_client.items.items()
        if item.task.task_definition.code == "NOTIFICATION_GRANTED"
    )
    assert ("assign_process_item_task", (notification_id, fake_rest_client.initiator_id)) in fake_rest_client.calls
    assert fake_rest_client.calls[-1] == ("complete_process", process_id)


@pytest.mark.asyncio
async def test_big_loan_requires_approval(fake_rest_client):
    """换算后超过 5000 欧元需要审批，审批任务带上换算后的金额"""
    process_id = uuid4()
    application = make_process_item(
        "LOAN_APPLICATION",
        {"FIRST_NAME": "Ana", "LAST_NAME": "Ruiz", "CURRENCY": "USD", "AMOUNT": "6000"},
        process_id=process_id,
    )
    fake_rest_client.items[application.id] = application
    converter = FakeCurrencyConverter(rate="0.9")
    handler = LoanWebhookHandler(fake_rest_client, converter)

    await handler.handle(parse_webhook_event(
        task_state_changed(process_id, application.id, "LOAN_APPLICATION")
    ))

    assert converter.calls == [("USD", "6000")]
    assert fake_rest_client.created_codes() == ["APPROVE_LOAN"]
    assert fake_rest_client.created[0].task.data.value == {
        "FIRST_NAME": "Ana",
        "LAST_NAME": "Ruiz",
        "AMOUNT": "5400.0",
    }
    assert not any(name == "complete_process" for name, _ in fake_rest_client.calls)


@pytest.mark.asyncio
async def test_missing_amount_counts_as_zero(fake_rest_client, fake_converter):
    process_id = uuid4()
    application = make_process_item("LOAN_APPLICATION", {"CURRENCY": "EUR"}, process_id=process_id)
    fake_rest_client.items[application.id] = application
    handler = LoanWebhookHandler(fake_rest_client, fake_converter)

    await handler.handle(parse_webhook_event(
        task_state_changed(process_id, application.id, "LOAN_APPLICATION")
    ))

    assert fake_converter.calls == [("EUR", "0")]
    assert fake_rest_client.created_codes() == ["NOTIFICATION_GRANTED"]


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", ["NaN", "Infinity", "doce"])
async def test_invalid_amount_is_ignored(fake_rest_client, amount):
    """金额非法时忽略事件，不创建任务也不完成流程"""
    process_id = uuid4()
    application = make_process_item(
        "LOAN_APPLICATION",
        {"CURRENCY": "EUR", "AMOUNT": amount},
        process_id=process_id,
    )
    fake_rest_client.items[application.id] = application
    handler = LoanWebhookHandler(fake_rest_client, CurrencyConverter(api_url="https://currency.test/v1"))

    await handler.handle(parse_webhook_event(
        task_state_changed(process_id, application.id, "LOAN_APPLICATION")
    ))

    assert fake_rest_client.created == []
    assert not any(name == "complete_process" for name, _ in fake_rest_client.calls)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "approval, expected",
    [("YES", "NOTIFICATION_GRANTED"), ("NO", "NOTIFICATION_REJECTION")],
)
async def test_approval_decides_notification(fake_rest_client, fake_converter, approval, expected):
    process_id = uuid4()
    approve = make_process_item("APPROVE_LOAN", {"APPROVAL": approval}, process_id=process_id)
    fake_rest_client.items[approve.id] = approve
    handler = LoanWebhookHandler(fake_rest_client, fake_converter)

    await handler.handle(parse_webhook_event(
        task_state_changed(process_id, approve.id, "APPROVE_LOAN")
    ))

    assert fake_rest_client.created_codes() == [expected]
    assert fake_rest_client.calls[-1] == ("complete_process", process_id)


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [403, 409])
async def test_forbidden_and_conflict_are_ignored(fake_rest_client, fake_converter, status_code):
    fake_rest_client.fail_with = status_code
    handler = LoanWebhookHandler(fake_rest_client, fake_converter)

    await handler.handle(parse_webhook_event(process_state_changed(uuid4())))

    assert fake_rest_client.created == []


@pytest.mark.asyncio
async def test_other_api_errors_are_raised(fake_rest_client, fake_converter):
    fake_rest_client.fail_with = 500
    handler = LoanWebhookHandler(fake_rest_client, fake_converter)

    with pytest.raises(KuFlowApiError) as exc_info:
        await handler.handle(parse_webhook_event(process_state_changed(uuid4())))

    assert exc_info.value.status == 500


# ==================== /webhooks 端点 ====================

@pytest.fixture
def api_client(fake_rest_client, fake_converter):
    """创建测试用 API 客户端，处理器替换为内存版"""
    handler = LoanWebhookHandler(fake_rest_client, fake_converter)
    app.dependency_overrides[get_loan_webhook_handler] = lambda: handler

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


def test_webhook_endpoint_dispatches_event(api_client, fake_rest_client):
    response = api_client.post("/webhooks", content=json.dumps(process_state_changed(uuid4())))

    assert response.status_code == 200
    assert fake_rest_client.created_codes() == ["LOAN_APPLICATION"]


def test_webhook_endpoint_ignores_conflict(api_client, fake_rest_client):
    fake_rest_client.fail_with = 409

    response = api_client.post("/webhooks", content=json.dumps(process_state_changed(uuid4())))

    assert response.status_code == 200


def test_webhook_endpoint_reports_api_failure(api_client, fake_rest_client):
    fake_rest_client.fail_with = 500

    response = api_client.post("/webhooks", content=json.dumps(process_state_changed(uuid4())))

    assert response.status_code == 502
    assert response.json()["status"] == 500


def test_webhook_endpoint_accepts_event_with_nan_amount(api_client, fake_rest_client):
    process_id = uuid4()
    application = make_process_item("LOAN_APPLICATION", {"CURRENCY": "EUR", "AMOUNT": "NaN"}, process_id=process_id)
    fake_rest_client.items[application.id] = application

    response = api_client.post(
        "/webhooks",
        content=json.dumps(task_state_changed(process_id, application.id, "LOAN_APPLICATION")),
    )

    assert response.status_code == 200
    assert fake_rest_client.created == []


def test_webhook_endpoint_rejects_invalid_payload(api_client):
    response = api_client.post("/webhooks", content=b'{"type": "PROCESS.STATE_CHANGED"}')

    assert response.status_code == 400


def test_health(api_client):
    response = api_client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
