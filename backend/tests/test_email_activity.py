# tests/test_email_activity.py
# 邮件 Activity 测试
#
# 运行方式：
#   pytest tests/test_email_activity.py -v
#
# aiosmtplib.send 被替换，不会真的连接 SMTP 服务器

import jinja2
import pytest
from temporalio.testing import ActivityEnvironment

from kuflow_samples.core.config import Settings
from kuflow_samples.temporal.activities import email as email_module
from kuflow_samples.temporal.activities.email import EmailActivities
from kuflow_samples.temporal.types import Email, SendMailRequest


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        SMTP_HOST="smtp.test",
        SMTP_PORT=2525,
        SMTP_FROM="robot@kuflow.test",
    )


@pytest.fixture
def email():
    return Email(
        template="email",
        to="ana@example.com",
        variables={"subject": "Hola", "body": "<b>Hello</b> from KuFlow"},
    )


def test_render_escapes_variables(settings, email):
    html = EmailActivities(settings).render(email)

    assert "Hola" in html
    assert "&lt;b&gt;Hello&lt;/b&gt; from KuFlow" in html


def test_build_message(settings, email):
    msg = EmailActivities(settings).build_message(email)

    assert msg["From"] == "robot@kuflow.test"
    assert msg["To"] == "ana@example.com"
    assert msg["Subject"] == "Hola"
    assert msg["Message-ID"].endswith("@smtp.test>")


def test_custom_templates_dir(tmp_path):
    (tmp_path / "welcome.html").write_text("Welcome {{ name }}!")
    settings = Settings(_env_file=None, EMAIL_TEMPLATES_DIR=str(tmp_path))
    email = Email(template="welcome", to="ana@example.com", variables={"name": "Ana"})

    assert EmailActivities(settings).render(email) == "Welcome Ana!"


def test_unknown_template(settings):
    email = Email(template="missing", to="ana@example.com")

    with pytest.raises(jinja2.TemplateNotFound):
        EmailActivities(settings).render(email)


@pytest.mark.asyncio
async def test_send_mail(monkeypatch, settings, email):
    sent = []

    async def fake_send(message, **kwargs):
        sent.append((message, kwargs))

    monkeypatch.setattr(email_module.aiosmtplib, "send", fake_send)
    activities = EmailActivities(settings)

    await ActivityEnvironment().run(activities.send_mail, SendMailRequest(email=email))

    [(message, kwargs)] = sent
    assert message["To"] == "ana@example.com"
    assert kwargs["hostname"] == "smtp.test"
    assert kwargs["port"] == 2525
    assert kwargs["username"] is None
    assert kwargs["use_tls"] is False
