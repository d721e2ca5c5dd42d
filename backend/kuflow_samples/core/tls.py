# kuflow_samples/core/tls.py
# Temporal 双向 TLS 配置
#
# CA、客户端证书、客户端私钥三者都可以用两种方式提供：
# - 文件路径：TEMPORAL_MTLS_CA / TEMPORAL_MTLS_CERT / TEMPORAL_MTLS_KEY
# - 内联 PEM：TEMPORAL_MTLS_CA_DATA / TEMPORAL_MTLS_CERT_DATA / TEMPORAL_MTLS_KEY_DATA
# 同时提供时文件路径优先。只含空白的值视为未配置。
#
# 没有配置证书时返回 None，即使用非 TLS 连接（本地开发）。

from pathlib import Path
from typing import Optional

from temporalio.service import TLSConfig

from kuflow_samples.core.config import Settings, settings as default_settings


class TlsConfigurationError(Exception):
    """mTLS 配置错误"""


def _is_blank(value: Optional[str]) -> bool:
    return not value or not value.strip()


def _read_material(file: Optional[str], pem: Optional[str]) -> Optional[bytes]:
    """读取证书材料，文件路径优先，其次内联 PEM"""
    if not _is_blank(file):
        try:
            return Path(file).read_bytes()
        except OSError as e:
            raise TlsConfigurationError(f"Unable to load {file}") from e
    if not _is_blank(pem):
        return pem.encode("utf-8")
    return None


def build_tls_config(settings: Optional[Settings] = None) -> Optional[TLSConfig]:
    """
    根据配置构建 Temporal 的 TLSConfig

    Args:
        settings: 配置实例，默认使用全局配置

    Returns:
        Optional[TLSConfig]: 未配置证书时返回 None

    Raises:
        TlsConfigurationError: 证书配置不完整或文件无法读取
    """
    settings = settings or default_settings

    cert = settings.TEMPORAL_MTLS_CERT
    cert_data = settings.TEMPORAL_MTLS_CERT_DATA
    if _is_blank(cert) and _is_blank(cert_data):
        return None

    if not _is_blank(cert) and (
        _is_blank(settings.TEMPORAL_MTLS_KEY) or _is_blank(settings.TEMPORAL_MTLS_CA)
    ):
        raise TlsConfigurationError("key and ca are required")

    if not _is_blank(cert_data) and (
        _is_blank(settings.TEMPORAL_MTLS_KEY_DATA) or _is_blank(settings.TEMPORAL_MTLS_CA_DATA)
    ):
        raise TlsConfigurationError("keyData or caData are required")

    return TLSConfig(
        server_root_ca_cert=_read_material(settings.TEMPORAL_MTLS_CA, settings.TEMPORAL_MTLS_CA_DATA),
        client_cert=_read_material(cert, cert_data),
        client_private_key=_read_material(settings.TEMPORAL_MTLS_KEY, settings.TEMPORAL_MTLS_KEY_DATA),
    )
