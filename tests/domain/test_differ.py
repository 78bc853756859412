"""
StructuralDiffer のユニットテスト

2つのドキュメント木の構造比較と差分ノードの出力順を検証します。
"""

import pytest
from datetime import datetime, timezone

from src.audit_trail.domain.differ import StructuralDiffer
from src.audit_trail.domain.models import (
    Added,
    ArrayElementChanged,
    Deleted,
    Edited,
)


@pytest.fixture
def differ():
    return StructuralDiffer()


class TestDiffNoChange:
    """差分なしのテスト"""

    @pytest.mark.parametrize("tree", [
        {},
        [],
        None,
        "text",
        {"a": 1, "b": [1, {"c": None}], "d": {"e": "x"}},
        [{"x": [1, 2]}, "y"],
    ])
    def test_identical_trees_yield_no_changes(self, differ, tree):
        """同一の木同士は差分なしであること"""
        assert differ.diff(tree, tree) == []

    def test_equal_but_distinct_trees_yield_no_changes(self, differ):
        """別インスタンスでも値が等しければ差分なしであること"""
        before = {"a": [1, 2], "b": {"c": "x"}}
        after = {"a": [1, 2], "b": {"c": "x"}}
        assert differ.diff(before, after) == []


class TestDiffMapping:
    """マッピング比較のテスト"""

    def test_deleted_key(self, differ):
        """after に存在しないキーは Deleted になること"""
        assert differ.diff({"a": "x"}, {}) == [Deleted(path=("a",), lhs="x")]

    def test_added_key(self, differ):
        """before に存在しないキーは Added になること"""
        assert differ.diff({}, {"b": 2}) == [Added(path=("b",), rhs=2)]

    def test_edited_scalar(self, differ):
        """スカラー値の変更は Edited になること"""
        assert differ.diff({"b": 1}, {"b": 101}) == [Edited(path=("b",), lhs=1, rhs=101)]

    def test_nested_edit_path(self, differ):
        """ネストしたマッピングの変更はルートからのパスを持つこと"""
        changes = differ.diff({"d": {"e": "x"}}, {"d": {"e": "y"}})
        assert changes == [Edited(path=("d", "e"), lhs="x", rhs="y")]

    def test_key_order_is_before_then_added(self, differ):
        """before のキー順、その後 after のみのキーの順に出力されること"""
        changes = differ.diff(
            {"a": 1, "b": 2, "z": 0},
            {"c": 4, "b": 3, "a": 1}
        )
        assert changes == [
            Edited(path=("b",), lhs=2, rhs=3),
            Deleted(path=("z",), lhs=0),
            Added(path=("c",), rhs=4),
        ]

    def test_bool_and_int_are_different(self, differ):
        """True と 1 は別の値として扱うこと"""
        assert differ.diff({"f": True}, {"f": 1}) == [Edited(path=("f",), lhs=True, rhs=1)]

    def test_temporal_values_are_reported_as_is(self, differ):
        """日時と文字列の同値判定は行わず Edited として出力すること"""
        moment = datetime(2024, 1, 1, tzinfo=timezone.utc)
        changes = differ.diff({"t": moment}, {"t": "2024-01-01T00:00:00.000Z"})
        assert changes == [Edited(path=("t",), lhs=moment, rhs="2024-01-01T00:00:00.000Z")]


class TestDiffSequence:
    """配列比較のテスト"""

    def test_positional_edit(self, differ):
        """共通インデックスは位置で比較されること"""
        changes = differ.diff({"c": [1, 2]}, {"c": [1, 5]})
        assert changes == [Edited(path=("c", 1), lhs=2, rhs=5)]

    def test_removed_trailing_element(self, differ):
        """末尾の要素の削除は ArrayElementChanged(Deleted) になること"""
        changes = differ.diff({"c": [1, 2, 3]}, {"c": [1, 2]})
        assert changes == [
            ArrayElementChanged(
                path=("c",), index=2, item=Deleted(path=("c", 2), lhs=3)
            )
        ]

    def test_appended_elements_are_ascending(self, differ):
        """追加された要素はインデックス昇順で出力されること"""
        changes = differ.diff([1], [1, {"x": 1}, "y"])
        assert changes == [
            ArrayElementChanged(path=(), index=1, item=Added(path=(1,), rhs={"x": 1})),
            ArrayElementChanged(path=(), index=2, item=Added(path=(2,), rhs="y")),
        ]

    def test_removal_from_middle_shifts_positions(self, differ):
        """途中の要素を削除すると後続の要素が変更として検知されること"""
        changes = differ.diff(["a", "b", "c"], ["a", "c"])
        assert changes == [
            Edited(path=(1,), lhs="b", rhs="c"),
            ArrayElementChanged(path=(), index=2, item=Deleted(path=(2,), lhs="c")),
        ]

    def test_nested_object_in_array(self, differ):
        """配列内のオブジェクトの変更はインデックスを含むパスを持つこと"""
        changes = differ.diff(
            {"items": [{"name": "a"}]},
            {"items": [{"name": "b"}]}
        )
        assert changes == [Edited(path=("items", 0, "name"), lhs="a", rhs="b")]

    def test_array_element_full_path(self, differ):
        """ArrayElementChanged の full_path はインデックスを含むこと"""
        change = differ.diff({"c": []}, {"c": [7]})[0]
        assert change.path == ("c",)
        assert change.full_path == ("c", 0)


class TestDiffShapeMismatch:
    """形の不一致のテスト"""

    def test_mapping_replaced_by_sequence(self, differ):
        """マッピングと配列の入れ替えは削除 + 追加になること"""
        changes = differ.diff({"x": {"a": 1}}, {"x": [1]})
        assert changes == [
            Deleted(path=("x",), lhs={"a": 1}),
            Added(path=("x",), rhs=[1]),
        ]

    def test_scalar_replaced_by_mapping(self, differ):
        """スカラーからマッピングへの変更は削除 + 追加になること"""
        changes = differ.diff({"x": "s"}, {"x": {"a": 1}})
        assert changes == [
            Deleted(path=("x",), lhs="s"),
            Added(path=("x",), rhs={"a": 1}),
        ]

    def test_none_replaced_by_mapping_is_only_added(self, differ):
        """None からの変更は追加のみになること"""
        changes = differ.diff({"x": None}, {"x": {"a": 1}})
        assert changes == [Added(path=("x",), rhs={"a": 1})]

    def test_mapping_replaced_by_none_is_only_deleted(self, differ):
        """None への変更は削除のみになること"""
        changes = differ.diff({"x": [1]}, {"x": None})
        assert changes == [Deleted(path=("x",), lhs=[1])]


class TestDiffDeterminism:
    """決定性のテスト"""

    def test_same_input_same_output(self, differ):
        """同じ入力に対して同じ順序の結果を返すこと"""
        before = {"a": [1, {"b": 2}], "c": {"d": 1}, "e": "x"}
        after = {"a": [2, {"b": 3}, 4], "c": {}, "f": None}
        assert differ.diff(before, after) == differ.diff(before, after)

    def test_inputs_are_not_mutated(self, differ):
        """入力の木を変更しないこと"""
        before = {"a": [1, 2], "b": {"c": 1}}
        after = {"a": [1], "b": {"c": 2, "d": 3}}
        differ.diff(before, after)
        assert before == {"a": [1, 2], "b": {"c": 1}}
        assert after == {"a": [1], "b": {"c": 2, "d": 3}}


class TestDiffNaN:
    """NaN の比較のテスト"""

    def test_nan_on_both_sides_is_unchanged(self, differ):
        """両側が NaN の場合は差分なしであること"""
        assert differ.diff({"score": float("nan")}, {"score": float("nan")}) == []

    def test_nan_to_number_is_edited(self, differ):
        """NaN から数値への変更は Edited になること"""
        changes = differ.diff({"score": float("nan")}, {"score": 1.0})
        assert len(changes) == 1
        assert changes[0].path == ("score",)
        assert changes[0].rhs == 1.0
