"""
应用配置模块
"""
from typing import Annotated, List
import json

from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic import field_validator

DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:3000",
]


class Settings(BaseSettings):
    """应用配置类"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "KintaiCompliance"
    app_version: str = "1.0.0"
    debug: bool = False

    # CORS 配置，环境变量原样交给 split_origins 处理
    allowed_origins: Annotated[List[str], NoDecode] = DEFAULT_ALLOWED_ORIGINS.copy()

    # 分析配置：是否把当天纳入违规检测（当天尚未打卡下班时容易误报）
    include_today: bool = False
    # 计算“今天”所用的时区
    analysis_timezone: str = "Asia/Tokyo"

    # 文件上传配置
    max_upload_size: int = 10  # MB

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def split_origins(cls, value):
        """
        支持通过环境变量 ALLOWED_ORIGINS 以逗号分隔或 JSON 数组配置，空值时回退到默认值。
        """
        if isinstance(value, str) and value.strip().startswith("["):
            return json.loads(value) or DEFAULT_ALLOWED_ORIGINS
        if isinstance(value, str):
            origins = [origin.strip() for origin in value.split(",") if origin.strip()]
            return origins or DEFAULT_ALLOWED_ORIGINS
        return value

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_size * 1024 * 1024


settings = Settings()
