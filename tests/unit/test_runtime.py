"""Tests for the Wisp runtime object model.

Covers:
- ObjectHolder, truthiness and printing
- Equality and ordering protocols, including dunder delegation
- Derived comparators and their fixed composition
- Method lookup through the parent chain and arity-exact dispatch
"""

from __future__ import annotations

import io

import pytest

from wisp.core.errors import ComparisonError, DispatchError
from wisp.core.ir import (
    Assignment,
    BoolConst,
    Compound,
    FieldAssignment,
    MethodBody,
    Return,
    Statement,
    StringConst,
    VariableValue,
)
from wisp.core.runtime import (
    Bool,
    Class,
    ClassInstance,
    DummyContext,
    Method,
    Number,
    ObjectHolder,
    String,
    equal,
    greater,
    greater_or_equal,
    is_true,
    less,
    less_or_equal,
    not_equal,
)


def method(name: str, params: list[str], body: Statement) -> Method:
    return Method(name=name, formal_params=params, body=MethodBody(body=body))


def returning(value: Statement) -> Statement:
    return Return(statement=value)


def num(value: int) -> ObjectHolder:
    return ObjectHolder.own(Number(value))


def text(value: str) -> ObjectHolder:
    return ObjectHolder.own(String(value))


def boolean(value: bool) -> ObjectHolder:
    return ObjectHolder.own(Bool(value))


NONE = ObjectHolder.none()


def printed(holder: ObjectHolder, context: DummyContext) -> str:
    out = io.StringIO()
    holder.get().print(out, context)
    return out.getvalue()


# ============================================================================
# ObjectHolder
# ============================================================================


class TestObjectHolder:
    def test_none_is_falsy_handle(self) -> None:
        assert not NONE
        assert NONE.get() is None

    def test_own_and_share_hold_the_same_object(self) -> None:
        value = Number(3)
        assert ObjectHolder.own(value).get() is value
        assert ObjectHolder.share(value).get() is value

    def test_try_as(self) -> None:
        holder = num(1)
        assert holder.try_as(Number) is holder.get()
        assert holder.try_as(String) is None
        assert NONE.try_as(Number) is None


# ============================================================================
# Truthiness and printing
# ============================================================================


class TestTruthiness:
    @pytest.mark.parametrize(
        ("holder", "expected"),
        [
            (num(0), False),
            (num(-3), True),
            (text(""), False),
            (text("a"), True),
            (boolean(True), True),
            (boolean(False), False),
            (NONE, False),
        ],
    )
    def test_values(self, holder: ObjectHolder, expected: bool) -> None:
        assert is_true(holder) is expected

    def test_classes_and_instances_are_falsy(self) -> None:
        cls = Class(name="A")
        assert not is_true(ObjectHolder.own(cls))
        assert not is_true(ObjectHolder.own(ClassInstance(cls)))


class TestPrinting:
    def test_primitives(self, context: DummyContext) -> None:
        assert printed(num(-12), context) == "-12"
        assert printed(text("hi there"), context) == "hi there"
        assert printed(boolean(True), context) == "True"
        assert printed(boolean(False), context) == "False"

    def test_class(self, context: DummyContext) -> None:
        assert printed(ObjectHolder.own(Class(name="Rect")), context) == "Class Rect"

    def test_instance_uses_str_method(self, context: DummyContext) -> None:
        cls = Class(name="P", methods=[method("__str__", [], returning(StringConst(value="point")))])
        assert printed(ObjectHolder.own(ClassInstance(cls)), context) == "point"

    def test_instance_without_str_has_opaque_form(self, context: DummyContext) -> None:
        instance = ClassInstance(Class(name="P"))
        output = printed(ObjectHolder.own(instance), context)
        assert output.startswith("<P object at 0x")


# ============================================================================
# Comparisons
# ============================================================================


class TestEqual:
    def test_same_type_values(self, context: DummyContext) -> None:
        assert equal(num(2), num(2), context)
        assert not equal(num(2), num(3), context)
        assert equal(text("a"), text("a"), context)
        assert equal(boolean(False), boolean(False), context)

    def test_none_equals_none(self, context: DummyContext) -> None:
        assert equal(NONE, NONE, context)

    @pytest.mark.parametrize(
        ("lhs", "rhs"),
        [(num(1), text("1")), (num(1), boolean(True)), (num(1), NONE), (NONE, num(1))],
    )
    def test_mixed_types_are_not_comparable(self, lhs: ObjectHolder, rhs: ObjectHolder, context: DummyContext) -> None:
        with pytest.raises(ComparisonError):
            equal(lhs, rhs, context)

    def test_delegates_to_eq(self, context: DummyContext) -> None:
        cls = Class(name="Any", methods=[method("__eq__", ["other"], returning(BoolConst(value=True)))])
        instance = ObjectHolder.own(ClassInstance(cls))
        assert equal(instance, num(5), context)
        assert not not_equal(instance, NONE, context)

    def test_eq_must_return_bool(self, context: DummyContext) -> None:
        cls = Class(name="Bad", methods=[method("__eq__", ["other"], returning(StringConst(value="yes")))])
        with pytest.raises(ComparisonError, match="must return a bool"):
            equal(ObjectHolder.own(ClassInstance(cls)), num(1), context)

    def test_instance_on_right_is_not_consulted(self, context: DummyContext) -> None:
        cls = Class(name="Any", methods=[method("__eq__", ["other"], returning(BoolConst(value=True)))])
        with pytest.raises(ComparisonError):
            equal(num(5), ObjectHolder.own(ClassInstance(cls)), context)


class TestLess:
    def test_numbers_strings_bools(self, context: DummyContext) -> None:
        assert less(num(1), num(2), context)
        assert not less(num(2), num(2), context)
        assert less(text("abc"), text("abd"), context)
        assert less(boolean(False), boolean(True), context)
        assert not less(boolean(True), boolean(False), context)

    @pytest.mark.parametrize(("lhs", "rhs"), [(NONE, num(1)), (num(1), NONE), (NONE, NONE)])
    def test_none_is_never_ordered(self, lhs: ObjectHolder, rhs: ObjectHolder, context: DummyContext) -> None:
        with pytest.raises(ComparisonError):
            less(lhs, rhs, context)

    def test_mixed_types(self, context: DummyContext) -> None:
        with pytest.raises(ComparisonError):
            less(num(1), text("2"), context)

    def test_delegates_to_lt(self, context: DummyContext) -> None:
        cls = Class(name="Low", methods=[method("__lt__", ["other"], returning(BoolConst(value=True)))])
        assert less(ObjectHolder.own(ClassInstance(cls)), num(0), context)


class TestDerivedComparators:
    def test_numbers(self, context: DummyContext) -> None:
        assert greater(num(3), num(2), context)
        assert not greater(num(2), num(2), context)
        assert less_or_equal(num(2), num(2), context)
        assert greater_or_equal(num(2), num(2), context)
        assert not greater_or_equal(num(1), num(2), context)
        assert not_equal(text("a"), text("b"), context)

    def test_greater_or_equal_is_not_less_even_without_eq(self, context: DummyContext) -> None:
        # Only __lt__ is defined and it always answers False
        cls = Class(name="Lt", methods=[method("__lt__", ["other"], returning(BoolConst(value=False)))])
        instance = ObjectHolder.own(ClassInstance(cls))
        assert greater_or_equal(instance, num(1), context)
        with pytest.raises(ComparisonError):
            less_or_equal(instance, num(1), context)
        with pytest.raises(ComparisonError):
            greater(instance, num(1), context)


# ============================================================================
# Classes and dispatch
# ============================================================================


def _shape_classes() -> tuple[Class, Class, Class]:
    base = Class(
        name="Shape",
        methods=[
            method("name", [], returning(StringConst(value="shape"))),
            method("kind", [], returning(StringConst(value="base"))),
        ],
    )
    middle = Class(name="Polygon", methods=[method("name", [], returning(StringConst(value="polygon")))], parent=base)
    leaf = Class(name="Square", methods=[], parent=middle)
    return base, middle, leaf


class TestClass:
    def test_get_method_own_first(self) -> None:
        _, middle, _ = _shape_classes()
        assert middle.get_method("name").body == MethodBody(body=returning(StringConst(value="polygon")))

    def test_get_method_walks_parent_chain(self) -> None:
        base, middle, leaf = _shape_classes()
        assert leaf.get_method("name") is middle.get_method("name")
        assert leaf.get_method("kind") is base.get_method("kind")

    def test_missing_method(self) -> None:
        _, _, leaf = _shape_classes()
        assert leaf.get_method("area") is None


class TestClassInstance:
    def test_has_method_requires_exact_arity(self) -> None:
        cls = Class(name="A", methods=[method("f", ["a", "b"], returning(BoolConst(value=True)))])
        instance = ClassInstance(cls)
        assert instance.has_method("f", 2)
        assert not instance.has_method("f", 1)
        assert not instance.has_method("g", 0)

    def test_call_resolves_nearest_definition(self, context: DummyContext) -> None:
        _, _, leaf = _shape_classes()
        instance = ClassInstance(leaf)
        assert instance.call("name", [], context).get().value == "polygon"
        assert instance.call("kind", [], context).get().value == "base"

    def test_call_binds_self_and_params(self, context: DummyContext) -> None:
        cls = Class(
            name="Box",
            methods=[
                method(
                    "set",
                    ["value"],
                    FieldAssignment(
                        target=VariableValue(dotted_ids=["self"]),
                        field_name="value",
                        rv=VariableValue(dotted_ids=["value"]),
                    ),
                )
            ],
        )
        instance = ClassInstance(cls)
        result = instance.call("set", [num(7)], context)
        assert not result
        assert instance.fields["value"].get().value == 7

    def test_locals_do_not_leak_between_calls(self, context: DummyContext) -> None:
        body = Compound(
            statements=[
                Assignment(var="tmp", rv=StringConst(value="x")),
                returning(VariableValue(dotted_ids=["tmp"])),
            ]
        )
        instance = ClassInstance(Class(name="A", methods=[method("f", [], body)]))
        instance.call("f", [], context)
        assert "tmp" not in instance.fields

    @pytest.mark.parametrize("args", [[], [1, 2]])
    def test_call_with_wrong_arity_fails(self, args: list[int], context: DummyContext) -> None:
        cls = Class(name="A", methods=[method("f", ["x"], returning(BoolConst(value=True)))])
        with pytest.raises(DispatchError) as exc_info:
            ClassInstance(cls).call("f", [num(a) for a in args], context)
        assert exc_info.value.method == "f"
        assert exc_info.value.arity == len(args)

    def test_call_unknown_method_fails(self, context: DummyContext) -> None:
        with pytest.raises(DispatchError, match="no method missing"):
            ClassInstance(Class(name="A")).call("missing", [], context)
