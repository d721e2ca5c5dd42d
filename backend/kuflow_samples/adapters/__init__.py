# kuflow_samples/adapters/__init__.py
# 外部系统适配器
#
# 目前只有 KuFlow REST API 客户端

from kuflow_samples.adapters.kuflow import KuFlowApiError, KuFlowRestClient

__all__ = [
    "KuFlowApiError",
    "KuFlowRestClient",
]
