"""
パス操作・等価判定ユーティリティ

差分検知と監査正規化の双方から使われる補助関数を提供します:
- パスの延長 (常に新しいタプルを返す)
- 部分木の形を保ったまま葉を None に置き換えるベースライン生成
- 日時・識別子の表現違いを同値とみなす判定
"""

import re
from collections.abc import Mapping
from datetime import date, datetime, time, timezone
from typing import Any, Optional, Protocol, runtime_checkable

from .models import Path, PathSegment

# 小数秒 (Python 3.11 未満の fromisoformat は 3 桁か 6 桁のみ受け付ける)
_FRACTION = re.compile(r"(T\d{2}:\d{2}:\d{2})\.(\d+)")


@runtime_checkable
class IdentityComparable(Protocol):
    """equals() による同一性比較を提供する識別子型"""

    def equals(self, other: Any) -> bool: ...


def extend_path(path: Path, segment: PathSegment) -> Path:
    """親パスに子セグメントを付け足した新しいパスを返す"""
    return path + (segment,)


def format_path(path: Path) -> str:
    """パスをドット区切りの文字列に変換 (例: items.0.name)"""
    return ".".join(str(segment) for segment in path)


def is_mapping(value: Any) -> bool:
    return isinstance(value, Mapping)


def is_sequence(value: Any) -> bool:
    # str / bytes は葉として扱う
    return isinstance(value, (list, tuple))


def blank_tree(value: Any) -> Any:
    """
    形を保ったまま全ての葉を None に置き換えた木を返す

    Args:
        value: 元の部分木

    Returns:
        Any: マッピング・配列の構造は同じで、スカラーが None の木
    """
    if is_mapping(value):
        return {key: blank_tree(child) for key, child in value.items()}
    if is_sequence(value):
        return [blank_tree(child) for child in value]
    return None


def is_blank(value: Any) -> bool:
    """部分木の葉がすべて None (または空) なら True"""
    if is_mapping(value):
        return all(is_blank(child) for child in value.values())
    if is_sequence(value):
        return all(is_blank(child) for child in value)
    return value is None


def to_instant(value: Any) -> Optional[datetime]:
    """
    日時として解釈できる値を UTC の aware datetime に変換

    Args:
        value: datetime / date / ISO 8601 文字列

    Returns:
        Optional[datetime]: 解釈できない場合は None

    Note:
        - タイムゾーンなしの値は UTC とみなす
        - "Z" サフィックスを受け付ける
    """
    if isinstance(value, datetime):
        instant = value
    elif isinstance(value, date):
        instant = datetime.combine(value, time.min)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        text = _FRACTION.sub(_pad_fraction, text)
        try:
            instant = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant


def _pad_fraction(match: "re.Match") -> str:
    return f"{match.group(1)}.{match.group(2)[:6].ljust(6, '0')}"


def is_temporal(value: Any) -> bool:
    return isinstance(value, (datetime, date))


def same_instant(lhs: Any, rhs: Any) -> bool:
    """
    片方が日時型で、もう片方が同じ時刻を表す場合に True

    どちらも日時型でない場合は判定対象外として False を返します。
    """
    if not (is_temporal(lhs) or is_temporal(rhs)):
        return False
    left = to_instant(lhs)
    right = to_instant(rhs)
    if left is None or right is None:
        return False
    return left == right


def same_identity(lhs: Any, rhs: Any) -> bool:
    """equals() を持つ識別子同士を、その比較結果で判定"""
    if isinstance(lhs, IdentityComparable):
        return bool(lhs.equals(rhs))
    if isinstance(rhs, IdentityComparable):
        return bool(rhs.equals(lhs))
    return False


def is_equivalent(lhs: Any, rhs: Any) -> bool:
    """表現が異なるだけで同値な値の組なら True"""
    return same_instant(lhs, rhs) or same_identity(lhs, rhs)
