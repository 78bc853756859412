"""
オーケストレーション層

差分計算・保存・検索を調整するサービスを提供します。
"""

from .audit_service import AuditTrailService, ConfigurationError, SaveResult

__all__ = ["AuditTrailService", "ConfigurationError", "SaveResult"]
