"""
ドメイン層

構造差分検知・同値判定・監査レコード正規化ロジックを提供します。
"""

from .models import (
    Added,
    ArrayElementChanged,
    AuditAction,
    AuditRecord,
    Deleted,
    DocumentContext,
    Edited,
    EnrichmentConfig,
    ObjectRef,
    RawChange,
)
from .differ import StructuralDiffer
from .normalizer import AuditNormalizer

__all__ = [
    "Added",
    "ArrayElementChanged",
    "AuditAction",
    "AuditRecord",
    "Deleted",
    "DocumentContext",
    "Edited",
    "EnrichmentConfig",
    "ObjectRef",
    "RawChange",
    "StructuralDiffer",
    "AuditNormalizer",
]
