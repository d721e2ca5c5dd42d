# kuflow_samples/temporal/client.py
# Temporal Client 封装
#
# 连接 KuFlow 提供的 Temporal 服务：
# - mTLS 证书（可选，见 core/tls.py）
# - 认证：先用 KuFlow 应用凭证换取 ENGINE_TOKEN，
#   放在 gRPC metadata 的 authorization 头中
# - Token 过期前由后台任务自动刷新
# - 数据转换器：pydantic（camelCase JSON）+ 可选的 AES-GCM 加密

import asyncio
import dataclasses
from datetime import datetime, timezone
from typing import Optional

from temporalio.client import Client
from temporalio.contrib.pydantic import pydantic_data_converter
from temporalio.converter import DataConverter

from kuflow_samples.adapters.kuflow import KuFlowRestClient
from kuflow_samples.core.config import Settings, settings as default_settings
from kuflow_samples.core.logging import get_logger
from kuflow_samples.core.tls import build_tls_config
from kuflow_samples.schemas.kuflow import Authentication
from kuflow_samples.temporal.codec import build_encryption_codec

logger = get_logger(__name__)

# Token 到期前多久刷新
TOKEN_REFRESH_MARGIN_SECONDS = 60
# 刷新失败后的重试间隔
TOKEN_RETRY_SECONDS = 10
# 没有过期时间时的刷新间隔
TOKEN_DEFAULT_TTL_SECONDS = 300

# 全局 Client 实例（惰性初始化）
_client: Optional[Client] = None
_refresh_task: Optional[asyncio.Task] = None


def build_data_converter(settings: Optional[Settings] = None) -> DataConverter:
    """pydantic 数据转换器，配置了密钥时附加加密编解码器"""
    codec = build_encryption_codec(settings)
    if codec is None:
        return pydantic_data_converter
    return dataclasses.replace(pydantic_data_converter, payload_codec=codec)


def authorization_metadata(authentication: Authentication) -> dict[str, str]:
    return {"authorization": f"Bearer {authentication.token}"}


def seconds_until_refresh(authentication: Authentication, now: Optional[datetime] = None) -> float:
    """计算距离下次刷新的秒数（到期前 TOKEN_REFRESH_MARGIN_SECONDS 秒）"""
    if authentication.expired_at is None:
        return TOKEN_DEFAULT_TTL_SECONDS

    now = now or datetime.now(timezone.utc)
    expired_at = authentication.expired_at
    if expired_at.tzinfo is None:
        expired_at = expired_at.replace(tzinfo=timezone.utc)

    remaining = (expired_at - now).total_seconds() - TOKEN_REFRESH_MARGIN_SECONDS
    return max(remaining, 0)


async def _refresh_token_loop(
    client: Client,
    rest_client: KuFlowRestClient,
    authentication: Authentication,
) -> None:
    """后台任务：Token 到期前换取新 Token 并更新 Client 的 rpc_metadata"""
    delay = seconds_until_refresh(authentication)
    while True:
        await asyncio.sleep(delay)
        try:
            authentication = await rest_client.create_engine_token()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"刷新 Engine Token 失败，{TOKEN_RETRY_SECONDS} 秒后重试: {e}")
            delay = TOKEN_RETRY_SECONDS
            continue

        client.rpc_metadata = authorization_metadata(authentication)
        delay = seconds_until_refresh(authentication)
        logger.info(f"Engine Token 已刷新，过期时间: {authentication.expired_at}")


async def connect_temporal(
    rest_client: KuFlowRestClient,
    settings: Optional[Settings] = None,
) -> Client:
    """
    连接 Temporal Server

    Args:
        rest_client: KuFlow REST 客户端，用于换取 Engine Token
        settings: 配置实例，默认使用全局配置

    Returns:
        Client: Temporal Client 实例
    """
    global _refresh_task
    settings = settings or default_settings

    authentication = await rest_client.create_engine_token()

    logger.info(f"连接 Temporal Server: {settings.TEMPORAL_TARGET} (namespace={settings.TEMPORAL_NAMESPACE})")
    client = await Client.connect(
        settings.TEMPORAL_TARGET,
        namespace=settings.TEMPORAL_NAMESPACE,
        tls=build_tls_config(settings) or False,
        rpc_metadata=authorization_metadata(authentication),
        data_converter=build_data_converter(settings),
    )
    logger.info("Temporal Client 连接成功")

    _refresh_task = asyncio.create_task(_refresh_token_loop(client, rest_client, authentication))
    return client


async def get_temporal_client(rest_client: KuFlowRestClient) -> Client:
    """
    获取 Temporal Client 实例（单例模式）

    Returns:
        Client: Temporal Client 实例
    """
    global _client
    if _client is None:
        _client = await connect_temporal(rest_client)
    return _client


async def close_temporal_client():
    """
    停止 Token 刷新并释放 Client

    temporalio 的 Client 没有显式关闭方法，连接随进程退出释放
    """
    global _client, _refresh_task
    if _refresh_task is not None:
        _refresh_task.cancel()
        try:
            await _refresh_task
        except asyncio.CancelledError:
            pass
        _refresh_task = None
    if _client is not None:
        _client = None
        logger.info("Temporal Client 已关闭")
