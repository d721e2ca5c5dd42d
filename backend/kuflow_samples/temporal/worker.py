# kuflow_samples/temporal/worker.py
# Temporal Worker 启动器
#
# 用法：
#   python -m kuflow_samples.temporal.worker loan
#   python -m kuflow_samples.temporal.worker email
#   python -m kuflow_samples.temporal.worker uivision
#
# 不带参数时使用配置中的 WORKER_SAMPLE。
# Worker 负责执行工作流和活动，需要持续运行

import argparse
import asyncio
import signal
import sys
from typing import Optional

from temporalio.worker import Worker

from kuflow_samples.adapters.kuflow import KuFlowRestClient
from kuflow_samples.core.config import settings
from kuflow_samples.core.logging import get_logger, setup_logging
from kuflow_samples.temporal.activities import (
    CurrencyConversionActivities,
    DataSourceActivities,
    EmailActivities,
    KuFlowActivities,
    UIVisionActivities,
)
from kuflow_samples.temporal.client import close_temporal_client, get_temporal_client
from kuflow_samples.temporal.workflows import EmailWorkflow, LoanWorkflow, UIVisionSampleWorkflow

logger = get_logger(__name__)

SAMPLES = ("loan", "email", "uivision")


def build_registrations(sample: str, rest_client: KuFlowRestClient) -> tuple[list, list]:
    """
    返回某个示例需要注册的 Workflow 和 Activity

    Returns:
        tuple[list, list]: (workflows, activities)
    """
    kuflow_activities = KuFlowActivities(rest_client).all()

    if sample == "loan":
        return (
            [LoanWorkflow],
            kuflow_activities
            + CurrencyConversionActivities().all()
            + DataSourceActivities().all(),
        )
    if sample == "email":
        return [EmailWorkflow], kuflow_activities + EmailActivities().all()
    if sample == "uivision":
        return [UIVisionSampleWorkflow], kuflow_activities + UIVisionActivities(rest_client).all()

    raise ValueError(f"Unknown sample: {sample}")


async def run_worker(sample: str):
    """
    启动 Temporal Worker
    """
    logger.info("=" * 50)
    logger.info(f"启动 Temporal Worker: {sample}")
    logger.info(f"  Temporal Target: {settings.TEMPORAL_TARGET}")
    logger.info(f"  Namespace: {settings.TEMPORAL_NAMESPACE}")
    logger.info(f"  Task Queue: {settings.TEMPORAL_TASK_QUEUE}")
    logger.info("=" * 50)

    rest_client = KuFlowRestClient()
    try:
        client = await get_temporal_client(rest_client)
        logger.info("已连接到 Temporal Server")

        workflows, activities = build_registrations(sample, rest_client)
        worker = Worker(
            client,
            task_queue=settings.TEMPORAL_TASK_QUEUE,
            workflows=workflows,
            activities=activities,
        )

        logger.info("Temporal Worker 已启动，等待任务...")

        # 处理优雅关闭
        shutdown_event = asyncio.Event()

        def signal_handler(signum, frame):
            logger.info(f"收到信号 {signum}，准备关闭...")
            shutdown_event.set()

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        # 运行 Worker
        async with worker:
            await shutdown_event.wait()
    finally:
        await close_temporal_client()
        await rest_client.aclose()

    logger.info("Temporal Worker 已关闭")


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="KuFlow sample Temporal worker")
    parser.add_argument(
        "sample",
        nargs="?",
        choices=SAMPLES,
        default=settings.WORKER_SAMPLE,
        help="要运行的示例（默认读取 WORKER_SAMPLE）",
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None):
    """
    主入口
    """
    args = parse_args(argv)
    setup_logging("worker")
    try:
        asyncio.run(run_worker(args.sample))
    except KeyboardInterrupt:
        logger.info("收到 KeyboardInterrupt，正在退出...")
    except Exception as e:
        logger.exception(f"Worker 异常退出: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
