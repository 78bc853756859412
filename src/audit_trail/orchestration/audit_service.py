"""監査トレイルサービス"""

from typing import Any, Iterable, List, Optional
import logging
from pydantic import BaseModel

from ..domain.models import AuditRecord, DocumentContext, EnrichmentConfig
from ..domain.normalizer import AuditNormalizer
from ..infrastructure.audit_store import AuditStore


class ConfigurationError(Exception):
    """
    設定エラー例外

    必須のコラボレーター (監査ストア) が設定されていない場合を表します。
    """


class SaveResult(BaseModel):
    """
    保存結果サマリー

    Attributes:
        success: 保存が成功したか
        saved_count: 保存した件数
        errors: エラーメッセージリスト
    """
    success: bool
    saved_count: int = 0
    errors: List[str] = []


class AuditTrailService:
    """
    差分計算・保存・検索の調整

    Responsibilities:
    - 変更前後のスナップショットから監査レコードを生成
    - 監査レコードの一括保存 (失敗は結果として報告、リトライなし)
    - ドキュメント・バージョン単位の監査レコード検索
    """

    def __init__(
        self,
        store: AuditStore,
        config: Optional[EnrichmentConfig] = None,
        ignored_fields: Optional[Iterable[str]] = None
    ):
        """
        AuditTrailService を初期化

        Args:
            store: 監査ストア
            config: エンリッチメント関数の設定
            ignored_fields: トップレベルで無視するフィールド名

        Raises:
            ConfigurationError: store が指定されていない場合
        """
        if store is None:
            raise ConfigurationError("AuditTrailService requires an audit store")

        self.store = store
        self.normalizer = AuditNormalizer(config=config, ignored_fields=ignored_fields)
        self.logger = logging.getLogger(__name__)

    def get_audit_diffs(
        self,
        doc: DocumentContext,
        before: Any,
        after: Any
    ) -> List[AuditRecord]:
        """
        監査レコードを計算

        ドキュメントの保存に成功した後、結果を save_audit_diffs に渡します。

        Args:
            doc: 変更元ドキュメントのコンテキスト
            before: 比較元のスナップショット
            after: 現在のスナップショット

        Returns:
            List[AuditRecord]: 監査レコード
        """
        records = self.normalizer.build_audit_records(before, after, doc)
        self.logger.debug(
            f"Computed {len(records)} audit records",
            extra={"source_ref": str(doc.identity), "source_version": doc.version}
        )
        return records

    def save_audit_diffs(self, records: List[AuditRecord]) -> SaveResult:
        """
        監査レコードを保存

        Args:
            records: get_audit_diffs の結果

        Returns:
            SaveResult: 保存結果 (失敗時もエラーを含めて返す)
        """
        try:
            saved_count = self.store.create(records)
        except Exception as e:
            self.logger.error(f"Failed to save audit records: {str(e)}", exc_info=True)
            return SaveResult(success=False, errors=[str(e)])

        self.logger.info(
            "Audit records saved",
            extra={"saved_count": saved_count}
        )
        return SaveResult(success=True, saved_count=saved_count)

    def get_audit(self, doc: DocumentContext) -> List[AuditRecord]:
        """ドキュメントの全監査レコードを取得"""
        return self.store.find(doc.identity)

    def get_audit_version(self, doc: DocumentContext, version: int) -> List[AuditRecord]:
        """指定バージョンの監査レコードを取得"""
        return self.store.find(doc.identity, version=version)

    def get_audit_between(
        self,
        doc: DocumentContext,
        v1: int,
        v2: int
    ) -> List[AuditRecord]:
        """
        バージョン範囲の監査レコードを取得

        Args:
            doc: ドキュメントのコンテキスト
            v1: バージョン (順不同)
            v2: バージョン (順不同)

        Returns:
            List[AuditRecord]: min(v1, v2) <= version < max(v1, v2) のレコード
        """
        return self.store.find(doc.identity, version_range=(v1, v2))
