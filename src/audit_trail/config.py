"""
設定

環境変数から audit-trail の実行設定を読み込みます。
"""

import os
from pathlib import Path
from typing import List, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from .domain.normalizer import DEFAULT_IGNORED_FIELDS


class AuditSettings(BaseModel):
    """
    実行設定

    Attributes:
        store_dir: 監査ファイル保存ディレクトリ (AUDIT_STORE_DIR)
        ignored_fields: トップレベルで無視するフィールド (AUDIT_IGNORED_FIELDS, カンマ区切り)
        log_level: ログレベル (AUDIT_LOG_LEVEL)
    """

    store_dir: Path = Field(default=Path("audit"), description="監査ファイル保存ディレクトリ")
    ignored_fields: List[str] = Field(
        default_factory=lambda: sorted(DEFAULT_IGNORED_FIELDS),
        description="トップレベルで無視するフィールド"
    )
    log_level: str = Field(default="INFO", description="ログレベル")

    @field_validator("ignored_fields", mode="before")
    @classmethod
    def split_fields(cls, v):
        """カンマ区切り文字列をリストに変換"""
        if isinstance(v, str):
            return [field.strip() for field in v.split(",") if field.strip()]
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            raise ValueError(f"無効なログレベル: {v}")
        return level

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AuditSettings":
        """
        環境変数から設定を読み込み

        Args:
            environ: 環境変数。None の場合は os.environ

        Returns:
            AuditSettings: 未設定の項目はデフォルト値
        """
        environ = os.environ if environ is None else environ
        values = {}
        if environ.get("AUDIT_STORE_DIR"):
            values["store_dir"] = environ["AUDIT_STORE_DIR"]
        if environ.get("AUDIT_IGNORED_FIELDS"):
            values["ignored_fields"] = environ["AUDIT_IGNORED_FIELDS"]
        if environ.get("AUDIT_LOG_LEVEL"):
            values["log_level"] = environ["AUDIT_LOG_LEVEL"]
        return cls(**values)
