"""
インフラストラクチャ層

監査レコードのファイル永続化・検索などの外部システム依存を提供します。
"""

from .audit_store import AuditStore

__all__ = ["AuditStore"]
