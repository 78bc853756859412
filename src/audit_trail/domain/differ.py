"""
構造差分検知ロジック

変更前後の2つのドキュメント木を再帰的に比較し、
追加・削除・変更・配列要素変更の差分ノードを列挙します。
"""

import math
from typing import Any, List

from .equivalence import extend_path, is_mapping, is_sequence
from .models import Added, ArrayElementChanged, Deleted, Edited, Path, RawChange


class StructuralDiffer:
    """
    構造差分検知

    ドキュメント木を深さ優先で比較し、葉レベルの差分ごとに1ノードを出力します。
    同じ入力に対しては常に同じ順序の結果を返す純粋な処理です。
    """

    def diff(self, before: Any, after: Any) -> List[RawChange]:
        """
        2つのドキュメント木の差分を検知

        Args:
            before: 変更前の木
            after: 変更後の木

        Returns:
            List[RawChange]: 差分ノード (深さ優先順)

        Note:
            - マッピングは before のキー順、その後 after のみに存在するキー
            - 配列は位置で比較 (並べ替え・移動は検知しない)
            - 形の異なる値 (マッピングと配列など) は削除 + 追加として扱う
        """
        changes: List[RawChange] = []
        self._diff_value(before, after, (), changes)
        return changes

    def _diff_value(self, lhs: Any, rhs: Any, path: Path, changes: List[RawChange]) -> None:
        if lhs is rhs:
            return

        if is_mapping(lhs) and is_mapping(rhs):
            self._diff_mapping(lhs, rhs, path, changes)
            return

        if is_sequence(lhs) and is_sequence(rhs):
            self._diff_sequence(lhs, rhs, path, changes)
            return

        lhs_structured = is_mapping(lhs) or is_sequence(lhs)
        rhs_structured = is_mapping(rhs) or is_sequence(rhs)
        if lhs_structured or rhs_structured:
            # 形の不一致: 片側が None なら存在しないものとして扱う
            if lhs is not None:
                changes.append(Deleted(path=path, lhs=lhs))
            if rhs is not None:
                changes.append(Added(path=path, rhs=rhs))
            return

        if self._scalars_differ(lhs, rhs):
            changes.append(Edited(path=path, lhs=lhs, rhs=rhs))

    def _diff_mapping(self, lhs: Any, rhs: Any, path: Path, changes: List[RawChange]) -> None:
        for key, value in lhs.items():
            child_path = extend_path(path, key)
            if key in rhs:
                self._diff_value(value, rhs[key], child_path, changes)
            else:
                changes.append(Deleted(path=child_path, lhs=value))

        for key, value in rhs.items():
            if key not in lhs:
                changes.append(Added(path=extend_path(path, key), rhs=value))

    def _diff_sequence(self, lhs: Any, rhs: Any, path: Path, changes: List[RawChange]) -> None:
        common = min(len(lhs), len(rhs))

        for index in range(common):
            self._diff_value(lhs[index], rhs[index], extend_path(path, index), changes)

        for index in range(common, len(lhs)):
            changes.append(ArrayElementChanged(
                path=path,
                index=index,
                item=Deleted(path=extend_path(path, index), lhs=lhs[index])
            ))

        for index in range(common, len(rhs)):
            changes.append(ArrayElementChanged(
                path=path,
                index=index,
                item=Added(path=extend_path(path, index), rhs=rhs[index])
            ))

    @staticmethod
    def _scalars_differ(lhs: Any, rhs: Any) -> bool:
        """
        スカラー同士の比較

        bool と int は == で等しくなるため、型が異なる場合は変更とみなします。
        両側が NaN の場合は変更なしとみなします。
        """
        if isinstance(lhs, bool) != isinstance(rhs, bool):
            return True
        if isinstance(lhs, float) and isinstance(rhs, float) and math.isnan(lhs) and math.isnan(rhs):
            return False
        return bool(lhs != rhs)
