"""
audit-trail

ドキュメントの変更前後の状態から、フィールド単位の監査レコードを生成・保存します。
"""

from .domain import (
    AuditAction,
    AuditNormalizer,
    AuditRecord,
    DocumentContext,
    EnrichmentConfig,
    ObjectRef,
    StructuralDiffer,
)
from .orchestration import AuditTrailService, ConfigurationError, SaveResult

__version__ = "0.1.0"

__all__ = [
    "AuditAction",
    "AuditNormalizer",
    "AuditRecord",
    "AuditTrailService",
    "ConfigurationError",
    "DocumentContext",
    "EnrichmentConfig",
    "ObjectRef",
    "SaveResult",
    "StructuralDiffer",
]
