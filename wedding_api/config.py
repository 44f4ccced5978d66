"""
配置管理模块
"""
import logging
from functools import lru_cache
from typing import Literal

from pydantic import PositiveInt
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_PASSWORD = "22022026"


class Settings(BaseSettings):
    """应用配置"""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # 环境
    environment: str = "development"
    log_level: str = "INFO"

    # 部署模式：hosted（无服务器，读取平台地理头）/ local（本地 JSON 文件）
    deployment_mode: Literal["hosted", "local"] = "local"

    # 存储策略，进程启动时选定一次
    storage_backend: Literal["redis", "file", "logs"] = "file"

    # Redis（持久化 KV）
    redis_url: str = ""
    redis_key: str = "wedding_visitors"
    kv_capacity: PositiveInt = 1000

    # JSON 文件
    visitors_file: str = "visitors.json"
    file_capacity: PositiveInt = 500

    # Admin
    # 已知的弱默认值，生产环境请通过 ADMIN_PASSWORD 覆盖
    admin_password: str = DEFAULT_ADMIN_PASSWORD

    # 客户端 / 管理控制台
    api_base_url: str = "http://localhost:3001"
    invite_base_url: str = "http://localhost:5173"

    # Server
    host: str = "127.0.0.1"
    port: int = 3001

    # Sentry
    sentry_dsn: str = ""
    sentry_traces_sample_rate: float = 0.1

    # Metrics
    metrics_enabled: bool = True

    def is_production(self) -> bool:
        """是否生产环境"""
        return self.environment.lower() == "production"

    def is_hosted(self) -> bool:
        """是否托管部署"""
        return self.deployment_mode == "hosted"

    def validate_secrets(self) -> None:
        """
        检查生产环境的弱配置

        管理口令使用默认值时只告警，不中断启动。
        """
        if not self.is_production():
            return

        if not self.admin_password or self.admin_password == DEFAULT_ADMIN_PASSWORD:
            logger.warning("ADMIN_PASSWORD 仍为默认值，请在生产环境中覆盖")
        if self.storage_backend == "redis" and not self.redis_url:
            logger.warning("STORAGE_BACKEND=redis 但未配置 REDIS_URL")


@lru_cache()
def get_settings() -> Settings:
    """获取配置单例"""
    return Settings()
