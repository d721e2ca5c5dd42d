# kuflow_samples/temporal/activities/uivision.py
# UI.Vision 机器人 Activity
#
# 通过命令行启动浏览器，打开 UI.Vision 的 autorun HTML 执行指定宏：
#   <command> "file://<autoRunHtml>?direct=1&macro=<macro>&closeBrowser=1&closeRPA=1&savelog=<log>"
#
# 宏执行结束后 UI.Vision 把日志写到 <logDirectory>/<log>，
# 第一行是执行状态（Status=OK 表示成功），其余是执行明细。
# 日志内容会逐行追加到 KuFlow 任务日志中，方便在 KuFlow 界面查看。

import asyncio
from pathlib import Path
from typing import Optional
from urllib.parse import urlencode

from temporalio import activity
from temporalio.exceptions import ApplicationError

from kuflow_samples.adapters.kuflow import KuFlowRestClient
from kuflow_samples.core.config import Settings, settings as default_settings
from kuflow_samples.schemas.kuflow import ProcessItemTaskLogLevel
from kuflow_samples.temporal.types import ExecuteUIVisionMacroRequest


STATUS_OK = "Status=OK"


class UIVisionActivities:
    """UI.Vision Activities"""

    def __init__(self, rest_client: KuFlowRestClient, settings: Optional[Settings] = None):
        self.rest_client = rest_client
        self.settings = settings or default_settings

    def all(self) -> list:
        return [self.execute_uivision_macro]

    def build_command(self, log_file: str) -> list[str]:
        """构建启动命令"""
        params = urlencode({
            "direct": 1,
            "macro": self.settings.UIVISION_MACRO,
            "closeBrowser": 1 if self.settings.UIVISION_CLOSE_BROWSER else 0,
            "closeRPA": 1 if self.settings.UIVISION_CLOSE_RPA else 0,
            "savelog": log_file,
        })
        autorun = Path(self.settings.UIVISION_AUTORUN_HTML).resolve().as_uri()
        return [self.settings.UIVISION_COMMAND, f"{autorun}?{params}"]

    async def run_command(self, command: list[str]) -> None:
        """
        执行命令并等待结束

        超时或 Activity 被取消（如 Worker 关闭）时进程会被杀掉

        Raises:
            ApplicationError: 超时或退出码非 0
        """
        timeout = self.settings.UIVISION_EXECUTION_TIMEOUT.total_seconds()
        process = await asyncio.create_subprocess_exec(*command)
        try:
            return_code = await asyncio.wait_for(process.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            raise ApplicationError(
                f"UI.Vision macro did not finish in {timeout:.0f}s", type="UIVisionTimeout"
            ) from None
        finally:
            if process.returncode is None:
                process.kill()
                await process.wait()

        if return_code != 0:
            raise ApplicationError(f"UI.Vision exited with code {return_code}", type="UIVision")

    @activity.defn(name="UIVision_executeUIVisionMacro")
    async def execute_uivision_macro(self, request: ExecuteUIVisionMacroRequest) -> None:
        """
        执行宏并把日志写回 KuFlow 任务

        Raises:
            ApplicationError: 执行失败或日志中没有 Status=OK
        """
        log_directory = Path(self.settings.UIVISION_LOG_DIRECTORY)
        log_directory.mkdir(parents=True, exist_ok=True)

        info = activity.info()
        log_file = f"uivision_{info.workflow_id}_{info.activity_id}_{info.attempt}.log"
        log_path = log_directory / log_file

        command = self.build_command(log_file)
        activity.logger.info(f"[UIVision] 执行宏: {self.settings.UIVISION_MACRO}")
        await self.run_command(command)

        if not log_path.exists():
            raise ApplicationError(f"UI.Vision log not found: {log_path}", type="UIVision")

        lines = [line for line in log_path.read_text(encoding="utf-8").splitlines() if line.strip()]
        success = bool(lines) and lines[0].strip() == STATUS_OK

        level = ProcessItemTaskLogLevel.INFO if success else ProcessItemTaskLogLevel.ERROR
        for line in lines:
            await self.rest_client.append_process_item_task_log(request.process_item_id, line, level)

        if not success:
            raise ApplicationError(
                f"UI.Vision macro failed: {lines[0] if lines else 'empty log'}", type="UIVision"
            )

        activity.logger.info(f"[UIVision] 宏执行成功: process_item_id={request.process_item_id}")
