"""
データモデル定義

このモジュールは audit-trail のドメイン層のデータモデルを定義します:
- RawChange 系: StructuralDiffer が出力する正規化前の差分ノード
- AuditRecord: 永続化対象となる監査レコード
- DocumentContext: 差分元ドキュメントの識別子とバージョン
- EnrichmentConfig: ラベル・型・ユーザー・フィルターのコールバック設定
"""

import json
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

PathSegment = Union[str, int]
Path = Tuple[PathSegment, ...]


def stringify(value: Any) -> Optional[str]:
    """
    監査カラムに格納する文字列表現へ変換

    Args:
        value: 任意の値

    Returns:
        Optional[str]: None はそのまま None、それ以外は文字列

    Note:
        - 0, "", False などの falsy 値も None には潰さない
        - datetime / date は ISO 8601
        - 識別子 (ObjectRef 等) は str()
        - それ以外は JSON
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (bool, int, float, dict, list, tuple)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
    return str(value)


class ObjectRef:
    """
    ドキュメント参照用の不透明な識別子

    値による __eq__ は定義せず、equals() による同一性比較のみを提供します。
    """

    __slots__ = ("value",)

    def __init__(self, value: str):
        self.value = str(value)

    def equals(self, other: Any) -> bool:
        if isinstance(other, ObjectRef):
            return self.value == other.value
        return other is not None and self.value == str(other)

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"ObjectRef({self.value!r})"


class ChangeKind(str, Enum):
    """差分ノード種別"""
    ADDED = "added"
    DELETED = "deleted"
    EDITED = "edited"
    ARRAY = "array"


class RawChange(BaseModel):
    """StructuralDiffer が出力する差分ノードの基底"""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: ChangeKind
    path: Path = Field(default=(), description="ドキュメントルートからのパス")

    @property
    def full_path(self) -> Path:
        return self.path


class Added(RawChange):
    kind: ChangeKind = ChangeKind.ADDED
    rhs: Any = Field(default=None, description="追加された値 (部分木)")


class Deleted(RawChange):
    kind: ChangeKind = ChangeKind.DELETED
    lhs: Any = Field(default=None, description="削除された値")


class Edited(RawChange):
    kind: ChangeKind = ChangeKind.EDITED
    lhs: Any = Field(default=None, description="変更前の値")
    rhs: Any = Field(default=None, description="変更後の値")


class ArrayElementChanged(RawChange):
    """
    配列要素の追加・削除

    path は配列自体のパスで、要素位置は index に保持します。
    """

    kind: ChangeKind = ChangeKind.ARRAY
    index: int = Field(..., description="配列内の要素位置")
    item: Union[Added, Deleted] = Field(..., description="要素に対する差分")

    @property
    def full_path(self) -> Path:
        return self.path + (self.index,)


class AuditAction(str, Enum):
    """監査アクション"""
    ADD = "add"
    MODIFY = "modify"
    DELETE = "delete"


class DocumentContext(BaseModel):
    """
    差分元ドキュメントのコンテキスト

    identity は外部ドキュメント層が払い出す不透明な ID、
    version は保存のたびに外部層がインクリメントするカウンターです。
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    identity: Any = Field(..., description="ドキュメント識別子")
    version: int = Field(default=0, description="ドキュメントバージョン")

    @field_validator("identity")
    @classmethod
    def validate_identity(cls, v: Any) -> Any:
        """
        識別子の必須チェック

        Raises:
            ValueError: None が渡された場合
        """
        if v is None:
            raise ValueError("ドキュメント識別子は None にできません")
        return v


class AuditRecord(BaseModel):
    """
    監査レコード

    生成後に変更されない追記専用のレコードです。
    created_at / updated_at は永続化時にストアが付与します。
    """

    model_config = ConfigDict(frozen=True)

    action: AuditAction = Field(..., description="add / modify / delete")
    path: str = Field(..., description="変更箇所のパス (ドット区切り)")
    lhs: Optional[str] = Field(default=None, description="変更前の値")
    rhs: Optional[str] = Field(default=None, description="変更後の値")
    source_ref: str = Field(..., description="変更元ドキュメントの識別子")
    source_version: int = Field(..., description="変更元ドキュメントのバージョン")
    label: Optional[str] = Field(default=None, description="人間向けラベル")
    type: Optional[str] = Field(default=None, description="宣言された値の型")
    user: Optional[str] = Field(default=None, description="変更したユーザー")
    created_at: Optional[datetime] = Field(default=None, description="作成日時 (UTC)")
    updated_at: Optional[datetime] = Field(default=None, description="更新日時 (UTC)")

    @field_validator("lhs", "rhs", "source_ref", "user", mode="before")
    @classmethod
    def coerce_to_string(cls, v: Any) -> Optional[str]:
        """値・識別子を監査カラムの文字列表現へ変換"""
        return stringify(v)


LabelCallback = Callable[[Path, Any], Optional[str]]
TypeCallback = Callable[[Path, Any], Optional[str]]
UserCallback = Callable[[Path, Any], Any]
FilterCallback = Callable[[AuditRecord, Path, Any], bool]


class EnrichmentConfig(BaseModel):
    """
    呼び出し側が提供するエンリッチメント関数の設定

    各関数はすべて任意です。未設定の場合、対応するフィールドは出力されず、
    フィルターも適用されません。
    """

    model_config = ConfigDict(frozen=True)

    label: Optional[LabelCallback] = Field(default=None, description="(path, doc) -> ラベル")
    type: Optional[TypeCallback] = Field(default=None, description="(path, doc) -> 型名")
    user: Optional[UserCallback] = Field(default=None, description="(path, doc) -> ユーザー")
    filter: Optional[FilterCallback] = Field(
        default=None,
        description="(record, path, doc) -> 保持するなら True"
    )
