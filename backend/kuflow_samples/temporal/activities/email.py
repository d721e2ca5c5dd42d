# kuflow_samples/temporal/activities/email.py
# 邮件发送 Activity
#
# 功能说明：
# 1. 用 Jinja2 渲染 templates/<template>.html
# 2. 通过 aiosmtplib 发送 HTML 邮件
#
# SMTP 配置来自 Settings（SMTP_HOST / SMTP_PORT / SMTP_USER ...），
# 本地开发可以用 MailHog 等工具在 1025 端口接收邮件。

import uuid
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate
from pathlib import Path
from typing import Optional

import aiosmtplib
from jinja2 import Environment, FileSystemLoader, select_autoescape
from temporalio import activity

from kuflow_samples.core.config import Settings, settings as default_settings
from kuflow_samples.temporal.types import Email, SendMailRequest


DEFAULT_TEMPLATES_DIR = Path(__file__).resolve().parents[2] / "templates"


class EmailActivities:
    """
    邮件 Activities

    使用方法：
        email_activities = EmailActivities()
        Worker(..., activities=email_activities.all())
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        templates_dir = self.settings.EMAIL_TEMPLATES_DIR or DEFAULT_TEMPLATES_DIR
        self.jinja = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=select_autoescape(["html"]),
        )

    def all(self) -> list:
        return [self.send_mail]

    def render(self, email: Email) -> str:
        """渲染邮件模板"""
        template = self.jinja.get_template(f"{email.template}.html")
        return template.render(**email.variables)

    def build_message(self, email: Email) -> MIMEMultipart:
        """构建 MIME 邮件，variables 中的 subject 作为主题"""
        msg = MIMEMultipart("alternative")
        msg["From"] = self.settings.SMTP_FROM
        msg["To"] = email.to
        msg["Subject"] = str(email.variables.get("subject") or "")
        msg["Date"] = formatdate(localtime=True)
        msg["Message-ID"] = f"<{uuid.uuid4()}@{self.settings.SMTP_HOST}>"
        msg.attach(MIMEText(self.render(email), "html", "utf-8"))
        return msg

    @activity.defn(name="Email_sendMail")
    async def send_mail(self, request: SendMailRequest) -> None:
        """
        发送邮件

        Raises:
            jinja2.TemplateNotFound: 模板不存在
            aiosmtplib.SMTPException: 发送失败（由重试策略处理）
        """
        email = request.email
        msg = self.build_message(email)

        activity.logger.info(f"[SMTP] 发送邮件: to={email.to}, template={email.template}")

        await aiosmtplib.send(
            msg,
            hostname=self.settings.SMTP_HOST,
            port=self.settings.SMTP_PORT,
            username=self.settings.SMTP_USER or None,
            password=self.settings.SMTP_PASSWORD or None,
            use_tls=self.settings.SMTP_USE_TLS,
            start_tls=False if self.settings.SMTP_USE_TLS else None,
        )

        activity.logger.info(f"[SMTP] 发送成功: {msg['Message-ID']}")
