# kuflow_samples/core/config.py
# 配置管理模块
#
# 功能说明：
# 1. 使用 Pydantic Settings 从环境变量加载配置
# 2. 支持 .env 文件读取
# 3. 支持 YAML 配置文件（application.yaml），优先级最低
# 4. 提供类型安全的配置访问
#
# 配置优先级（高 → 低）：
#   初始化参数 > 环境变量 > .env 文件 > YAML 文件 > 默认值
#
# 使用方法：
#   from kuflow_samples.core.config import settings
#   print(settings.TEMPORAL_TARGET)

import os
from datetime import timedelta
from functools import lru_cache
from typing import Literal, Optional, Tuple, Type

from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)


# YAML 配置文件路径，可通过 APP_CONFIG_FILE 环境变量指定
DEFAULT_CONFIG_FILE = "application.yaml"


class Settings(BaseSettings):
    """
    应用配置类

    所有配置项都可以通过环境变量覆盖，环境变量名与属性名相同（大写）
    例如：设置 TEMPORAL_NAMESPACE=prod 环境变量会覆盖默认命名空间
    """

    model_config = SettingsConfigDict(
        env_file=".env",               # 从 .env 文件读取环境变量
        env_file_encoding="utf-8",     # 文件编码
        case_sensitive=True,           # 环境变量名区分大小写
        extra="ignore",                # YAML 中的未知字段直接忽略
    )

    # ==================== 应用基础配置 ====================
    APP_NAME: str = "KuFlow Samples"   # 应用名称，显示在日志和API文档中
    DEBUG: bool = False                # 调试模式

    # ==================== 日志配置 ====================
    # 日志级别：DEBUG < INFO < WARNING < ERROR < CRITICAL
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # 日志格式：console（彩色控制台输出）或 json（结构化JSON，适合生产环境）
    LOG_FORMAT: Literal["console", "json"] = "console"

    # ==================== Temporal 配置 ====================
    # Temporal Server 地址（KuFlow 提供的 engine 地址）
    # 本地开发：localhost:7233
    # KuFlow 云：engine.kuflow.com:443
    TEMPORAL_TARGET: str = "localhost:7233"

    # Temporal 命名空间，KuFlow 中通常是租户对应的命名空间
    TEMPORAL_NAMESPACE: str = "default"

    # 任务队列名称，必须与 KuFlow 流程定义中配置的队列一致
    TEMPORAL_TASK_QUEUE: str = "sample-engine-worker-queue"

    # ---------- 双向 TLS（mTLS） ----------
    # CA、证书、私钥都可以用文件路径或内联 PEM 数据提供，文件路径优先
    TEMPORAL_MTLS_CA: Optional[str] = None
    TEMPORAL_MTLS_CA_DATA: Optional[str] = None
    TEMPORAL_MTLS_CERT: Optional[str] = None
    TEMPORAL_MTLS_CERT_DATA: Optional[str] = None
    TEMPORAL_MTLS_KEY: Optional[str] = None
    TEMPORAL_MTLS_KEY_DATA: Optional[str] = None

    # ---------- Payload 加密 ----------
    # 设置后 Worker 会用 AES-GCM 加密所有 Payload（密钥必须是 16/24/32 字节）
    TEMPORAL_ENCRYPTION_KEY: Optional[str] = None
    TEMPORAL_ENCRYPTION_KEY_ID: str = "sample-key"

    # ==================== KuFlow API 配置 ====================
    # 获取方式：KuFlow 管理后台 → 应用（Application）→ 凭证
    KUFLOW_API_ENDPOINT: str = "https://api.kuflow.com/v2024-06-14"
    KUFLOW_CLIENT_ID: str = ""
    KUFLOW_CLIENT_SECRET: str = ""
    # 请求超时时间（秒）
    KUFLOW_API_TIMEOUT: float = 30.0

    # ==================== 汇率 API 配置 ====================
    # 公共汇率接口，{base}.json 返回 {"<base>": {"<target>": rate, ...}}
    CURRENCY_API_URL: str = (
        "https://cdn.jsdelivr.net/npm/@fawazahmed0/currency-api@latest/v1/currencies"
    )
    CURRENCY_API_TIMEOUT: float = 30.0

    # ==================== 邮件配置 ====================
    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 1025
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = False
    SMTP_FROM: str = "kuflow-samples@localhost"
    # 邮件模板目录，为空时使用包内自带模板
    EMAIL_TEMPLATES_DIR: Optional[str] = None

    # ==================== UI.Vision 配置 ====================
    # 启动浏览器的命令（如 /usr/bin/google-chrome）
    UIVISION_COMMAND: str = ""
    # UI.Vision 日志输出目录
    UIVISION_LOG_DIRECTORY: str = "/tmp/uivision"
    # ui.vision.html 自动运行页面的路径
    UIVISION_AUTORUN_HTML: str = ""
    # 要执行的宏名称
    UIVISION_MACRO: str = ""
    UIVISION_CLOSE_BROWSER: bool = True
    UIVISION_CLOSE_RPA: bool = True
    # 宏执行超时
    UIVISION_EXECUTION_TIMEOUT: timedelta = timedelta(minutes=5)

    # ==================== Worker 配置 ====================
    # 未在命令行指定时，启动哪个示例 Worker：loan / email / uivision
    WORKER_SAMPLE: Literal["loan", "email", "uivision"] = "loan"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """在默认来源之后追加 YAML 配置文件"""
        yaml_file = os.getenv("APP_CONFIG_FILE", DEFAULT_CONFIG_FILE)
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=yaml_file),
            file_secret_settings,
        )


@lru_cache()
def get_settings() -> Settings:
    """
    获取配置实例（单例模式）

    使用 @lru_cache 装饰器确保整个应用只创建一个 Settings 实例
    避免重复读取环境变量、.env 和 YAML 文件

    Returns:
        Settings: 配置实例
    """
    return Settings()


# 导出配置实例，方便其他模块使用
# 使用方式：from kuflow_samples.core.config import settings
settings = get_settings()
