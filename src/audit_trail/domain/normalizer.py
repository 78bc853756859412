"""
監査レコード正規化ロジック

StructuralDiffer の差分ノードを、ノイズ除去・同値判定・ラベル付け・
追加部分木の展開・メタデータ付与・最終フィルターを経て
フラットな AuditRecord のリストに変換します。
"""

import logging
from typing import Any, FrozenSet, Iterable, List, Optional

from .differ import StructuralDiffer
from .equivalence import blank_tree, format_path, is_blank, is_equivalent, is_mapping, is_sequence
from .models import (
    Added,
    ArrayElementChanged,
    AuditAction,
    AuditRecord,
    Deleted,
    DocumentContext,
    Edited,
    EnrichmentConfig,
    Path,
    RawChange,
)

# 構造上のフィールド (内容の変更ではない)
DEFAULT_IGNORED_FIELDS = frozenset({"_id", "__v", "created_at", "updated_at"})


class AuditNormalizer:
    """
    監査レコード正規化

    差分ノードごとに以下の順で処理します:
    1. ノイズ除去 (トップレベルの識別子・バージョン・タイムスタンプ)
    2. 同値判定 (日時と ISO 文字列、equals() を持つ識別子)
    3. ラベルゲート (label 関数が空を返した変更は破棄)
    4. レコード構築 (追加された部分木は再帰的に展開)
    5. メタデータ付与
    6. 最終フィルター
    """

    def __init__(
        self,
        config: Optional[EnrichmentConfig] = None,
        ignored_fields: Optional[Iterable[str]] = None,
        differ: Optional[StructuralDiffer] = None
    ):
        """
        AuditNormalizer を初期化

        Args:
            config: エンリッチメント関数の設定。None の場合は何も付与しない
            ignored_fields: トップレベルで無視するフィールド名
            differ: 差分検知。None の場合は StructuralDiffer を使用
        """
        self.config = config or EnrichmentConfig()
        self.ignored_fields: FrozenSet[str] = (
            frozenset(ignored_fields) if ignored_fields is not None else DEFAULT_IGNORED_FIELDS
        )
        self.differ = differ or StructuralDiffer()
        self.logger = logging.getLogger(__name__)

    def build_audit_records(
        self,
        before: Any,
        after: Any,
        doc: DocumentContext,
        base_path: Path = ()
    ) -> List[AuditRecord]:
        """
        変更前後の木から監査レコードを生成

        Args:
            before: 変更前の木
            after: 変更後の木
            doc: 変更元ドキュメントのコンテキスト
            base_path: 部分木を展開する場合の親パス

        Returns:
            List[AuditRecord]: 監査レコード (展開されたレコードは親の直後に並ぶ)

        Raises:
            エンリッチメント関数が送出した例外はそのまま伝播する
        """
        records: List[AuditRecord] = []
        for change in self.differ.diff(before, after):
            records.extend(self._normalize_change(change, doc, base_path))
        return records

    def _normalize_change(
        self,
        change: RawChange,
        doc: DocumentContext,
        base_path: Path
    ) -> List[AuditRecord]:
        path = base_path + change.full_path

        if self._is_noise(base_path + change.path):
            return []

        if isinstance(change, Edited) and is_equivalent(change.lhs, change.rhs):
            self.logger.debug(f"Equivalent values ignored at {format_path(path)}")
            return []

        label = None
        if self.config.label is not None:
            label = self.config.label(path, doc)
            if not label:
                return []

        record = self._build_record(change, path, doc, label)
        if record is None:
            return []

        if self.config.filter is not None and not self.config.filter(record, path, doc):
            return []

        records = [record]
        added = self._added_value(change)
        if is_mapping(added) or is_sequence(added):
            records.extend(
                self.build_audit_records(blank_tree(added), added, doc, base_path=path)
            )
        return records

    def _is_noise(self, path: Path) -> bool:
        return len(path) == 1 and path[0] in self.ignored_fields

    @staticmethod
    def _added_value(change: RawChange) -> Any:
        if isinstance(change, ArrayElementChanged):
            change = change.item
        if isinstance(change, Added):
            return change.rhs
        return None

    def _build_record(
        self,
        change: RawChange,
        path: Path,
        doc: DocumentContext,
        label: Optional[str]
    ) -> Optional[AuditRecord]:
        """
        差分ノードを AuditRecord に変換

        Returns:
            Optional[AuditRecord]: 監査対象外のノードは None
        """
        if isinstance(change, ArrayElementChanged) and isinstance(change.item, Deleted):
            return None

        if isinstance(change, Edited):
            action, lhs, rhs = AuditAction.MODIFY, change.lhs, change.rhs
        elif isinstance(change, Deleted):
            action, lhs, rhs = AuditAction.DELETE, change.lhs, None
        else:
            if is_blank(self._added_value(change)):
                return None
            action, lhs, rhs = AuditAction.ADD, None, None

        fields = {
            "action": action,
            "path": format_path(path),
            "lhs": lhs,
            "rhs": rhs,
            "source_ref": doc.identity,
            "source_version": doc.version,
        }
        if self.config.label is not None:
            fields["label"] = label
        if self.config.type is not None:
            fields["type"] = self.config.type(path, doc)
        if self.config.user is not None:
            fields["user"] = self.config.user(path, doc)

        return AuditRecord(**fields)
