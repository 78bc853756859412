"""
監査ストア

監査レコードをファイルシステム上の JSON ファイルに追記保存し、
ドキュメント・バージョン単位の検索を提供します。
"""

import json
import os
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

from ..domain.models import AuditRecord


class AuditStore:
    """
    監査レコード永続化

    AuditRecord のリストを JSON ファイルとして保存します。
    保存済みのレコードは変更せず、追記のみを行います。
    """

    AUDIT_FILENAME = "audit.json"

    # 同一プロセス内の書き込みを直列化
    _write_lock = threading.Lock()

    def __init__(self, store_dir: Optional[Path] = None):
        """
        AuditStore を初期化

        Args:
            store_dir: 監査ファイル保存ディレクトリ。
                       None の場合は "audit" を使用。
        """
        self.store_dir = Path(store_dir) if store_dir is not None else Path("audit")
        self.store_dir.mkdir(parents=True, exist_ok=True)

    @property
    def audit_file(self) -> Path:
        """監査ファイルのパス"""
        return self.store_dir / self.AUDIT_FILENAME

    def create(self, records: Sequence[AuditRecord]) -> int:
        """
        監査レコードを一括追加

        Args:
            records: 保存する監査レコード

        Returns:
            int: 保存した件数

        Note:
            - created_at / updated_at は保存時刻 (UTC) で付与
            - 元のレコードは変更せず、タイムスタンプ付きのコピーを保存
            - 一時ファイルに書き込んでから置き換えるため、読み込み側は
              常に完全なファイルを参照する
        """
        if not records:
            return 0

        with self._write_lock:
            now = self._now()
            stamped = [
                record.model_copy(update={"created_at": now, "updated_at": now})
                for record in records
            ]

            stored = self._read_all()
            stored.extend(record.model_dump(mode="json") for record in stamped)
            self._write_all(stored)

        return len(stamped)

    def find(
        self,
        source_ref: Any,
        version: Optional[int] = None,
        version_range: Optional[Tuple[int, int]] = None
    ) -> List[AuditRecord]:
        """
        ドキュメントの監査レコードを検索

        Args:
            source_ref: ドキュメント識別子
            version: 指定した場合、そのバージョンのレコードのみ
            version_range: (v1, v2) を指定した場合、min <= version < max のレコードのみ

        Returns:
            List[AuditRecord]: 作成日時の降順

        Raises:
            json.JSONDecodeError: JSON パースに失敗した場合
        """
        ref = str(source_ref)
        records = [AuditRecord(**item) for item in self._read_all()]
        records = [record for record in records if record.source_ref == ref]

        if version is not None:
            records = [record for record in records if record.source_version == version]

        if version_range is not None:
            low, high = min(version_range), max(version_range)
            records = [
                record for record in records
                if low <= record.source_version < high
            ]

        return sorted(
            records,
            key=lambda record: record.created_at or datetime.min.replace(tzinfo=timezone.utc),
            reverse=True
        )

    def _read_all(self) -> List[dict]:
        if not self.audit_file.exists():
            return []

        with open(self.audit_file, "r", encoding="utf-8") as f:
            return json.load(f)

    def _write_all(self, stored: List[dict]) -> None:
        fd, tmp_path = tempfile.mkstemp(
            dir=self.store_dir, prefix=".audit-", suffix=".json.tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(stored, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.audit_file)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)
