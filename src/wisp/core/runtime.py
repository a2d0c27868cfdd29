"""
Runtime object model for Wisp.

Values live behind ``ObjectHolder`` handles; a null handle is the
language's ``None``. Classes carry their methods and an optional parent for
single inheritance. Instances keep their fields in a ``Closure``, the same
name -> holder mapping used for variable scopes.

Comparison follows a fixed composition: ``not_equal``, ``greater``,
``less_or_equal`` and ``greater_or_equal`` are built from ``equal`` and
``less`` exactly as written below. ``greater_or_equal`` is the negation of
``less`` and does not consult ``equal``.
"""

from __future__ import annotations

import io
import logging
import sys
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TextIO, TypeVar

from .errors import ComparisonError, DispatchError

if TYPE_CHECKING:
    from .ir import Statement

logger = logging.getLogger(__name__)

INIT_METHOD = "__init__"
STR_METHOD = "__str__"
EQ_METHOD = "__eq__"
LT_METHOD = "__lt__"
ADD_METHOD = "__add__"

SELF_NAME = "self"

T = TypeVar("T", bound="Object")


class Context:
    """Execution context: the sink that ``print`` writes to."""

    def __init__(self, output: TextIO | None = None) -> None:
        self.output = output if output is not None else sys.stdout


class DummyContext(Context):
    """Context that collects output in memory."""

    def __init__(self) -> None:
        super().__init__(io.StringIO())

    def getvalue(self) -> str:
        return self.output.getvalue()


class Object(ABC):
    """Base of every runtime value."""

    @abstractmethod
    def print(self, out: TextIO, context: Context) -> None:
        """Write the printable form of the value."""


class ObjectHolder:
    """
    Nullable handle to a runtime value.

    ``own`` wraps a freshly created value; ``share`` aliases a value whose
    lifetime is already guaranteed elsewhere (the receiver bound to ``self``
    during a method call). Python's reference counting keeps both safe, so the
    two paths produce indistinguishable handles.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Object | None = None) -> None:
        self._data = data

    @classmethod
    def own(cls, obj: Object) -> ObjectHolder:
        return cls(obj)

    @classmethod
    def share(cls, obj: Object) -> ObjectHolder:
        return cls(obj)

    @classmethod
    def none(cls) -> ObjectHolder:
        return cls()

    def get(self) -> Object | None:
        return self._data

    def try_as(self, kind: type[T]) -> T | None:
        """Return the held value if it is a ``kind``, else None."""
        if isinstance(self._data, kind):
            return self._data
        return None

    def __bool__(self) -> bool:
        return self._data is not None

    def __repr__(self) -> str:
        return f"ObjectHolder({self._data!r})"


# Variable scope and instance field table
Closure = dict[str, ObjectHolder]


@dataclass(eq=False)
class Number(Object):
    value: int

    def print(self, out: TextIO, context: Context) -> None:
        out.write(str(self.value))


@dataclass(eq=False)
class String(Object):
    value: str

    def print(self, out: TextIO, context: Context) -> None:
        out.write(self.value)


@dataclass(eq=False)
class Bool(Object):
    value: bool

    def print(self, out: TextIO, context: Context) -> None:
        out.write("True" if self.value else "False")


@dataclass
class Method:
    """
    A method declared in a class body.

    Attributes:
        name: Method name
        formal_params: Parameter names after ``self``; their count is the arity
        body: Statement executed on call, normally a ``MethodBody``
    """

    name: str
    formal_params: list[str]
    body: Statement


@dataclass(eq=False)
class Class(Object):
    """
    A user-defined class.

    Methods are searched in declaration order, then in the parent chain.
    """

    name: str
    methods: list[Method] = field(default_factory=list)
    parent: Class | None = None

    def get_method(self, name: str) -> Method | None:
        for method in self.methods:
            if method.name == name:
                return method
        if self.parent is not None:
            return self.parent.get_method(name)
        return None

    def print(self, out: TextIO, context: Context) -> None:
        out.write(f"Class {self.name}")

    def __repr__(self) -> str:
        return f"Class({self.name!r})"


class ClassInstance(Object):
    """An instance of a user-defined class with its own field table."""

    def __init__(self, cls: Class) -> None:
        self.cls = cls
        self.fields: Closure = {}

    def has_method(self, name: str, argument_count: int) -> bool:
        method = self.cls.get_method(name)
        return method is not None and len(method.formal_params) == argument_count

    def call(self, name: str, actual_args: Sequence[ObjectHolder], context: Context) -> ObjectHolder:
        """
        Invoke a method with ``self`` bound to this instance.

        Raises:
            DispatchError: If no method has this name and argument count.
        """
        method = self.cls.get_method(name)
        if method is None or len(method.formal_params) != len(actual_args):
            raise DispatchError(
                f"Class {self.cls.name} has no method {name}() taking {len(actual_args)} argument(s)",
                method=name,
                arity=len(actual_args),
            )

        # Local import: the evaluator executes IR built on these runtime types
        from .evaluator import execute

        closure: Closure = {SELF_NAME: ObjectHolder.share(self)}
        closure.update(zip(method.formal_params, actual_args))

        logger.debug("Calling %s.%s with %d argument(s)", self.cls.name, name, len(actual_args))
        return execute(method.body, closure, context)

    def print(self, out: TextIO, context: Context) -> None:
        if self.has_method(STR_METHOD, 0):
            result = self.call(STR_METHOD, [], context)
            if result:
                result.get().print(out, context)
            else:
                out.write("None")
        else:
            out.write(f"<{self.cls.name} object at {id(self):#x}>")

    def __repr__(self) -> str:
        return f"<ClassInstance of {self.cls.name}>"


def is_true(obj: ObjectHolder) -> bool:
    """Truthiness: non-zero numbers, non-empty strings and True are truthy."""
    value = obj.get()
    if isinstance(value, (Number, Bool, String)):
        return bool(value.value)
    return False


def type_name(obj: ObjectHolder) -> str:
    """Short type name of a value for error messages."""
    value = obj.get()
    if value is None:
        return "None"
    if isinstance(value, Number):
        return "int"
    if isinstance(value, String):
        return "str"
    if isinstance(value, Bool):
        return "bool"
    if isinstance(value, Class):
        return "class"
    if isinstance(value, ClassInstance):
        return value.cls.name
    return type(value).__name__


def _bool_result(result: ObjectHolder, method: str) -> bool:
    value = result.try_as(Bool)
    if value is None:
        raise ComparisonError(f"{method}() must return a bool, got '{type_name(result)}'")
    return value.value


def equal(lhs: ObjectHolder, rhs: ObjectHolder, context: Context) -> bool:
    """
    Equality: None == None, same-type values by value, else ``__eq__`` on the left.

    Raises:
        ComparisonError: If the operands have no equality rule.
    """
    if not lhs and not rhs:
        return True

    left, right = lhs.get(), rhs.get()
    for kind in (Number, String, Bool):
        if isinstance(left, kind) and isinstance(right, kind):
            return left.value == right.value

    if isinstance(left, ClassInstance) and left.has_method(EQ_METHOD, 1):
        return _bool_result(left.call(EQ_METHOD, [rhs], context), EQ_METHOD)

    raise ComparisonError(
        f"Cannot compare objects for equality: '{type_name(lhs)}' and '{type_name(rhs)}'"
    )


def less(lhs: ObjectHolder, rhs: ObjectHolder, context: Context) -> bool:
    """
    Ordering: same-type numbers, strings and bools (as 0/1), else ``__lt__`` on the left.

    Raises:
        ComparisonError: If either side is None or the operands have no ordering rule.
    """
    if not lhs or not rhs:
        raise ComparisonError(
            f"Cannot order '{type_name(lhs)}' and '{type_name(rhs)}': None is not ordered"
        )

    left, right = lhs.get(), rhs.get()
    for kind in (Number, String):
        if isinstance(left, kind) and isinstance(right, kind):
            return left.value < right.value
    if isinstance(left, Bool) and isinstance(right, Bool):
        return int(left.value) < int(right.value)

    if isinstance(left, ClassInstance) and left.has_method(LT_METHOD, 1):
        return _bool_result(left.call(LT_METHOD, [rhs], context), LT_METHOD)

    raise ComparisonError(f"Cannot order '{type_name(lhs)}' and '{type_name(rhs)}'")


def not_equal(lhs: ObjectHolder, rhs: ObjectHolder, context: Context) -> bool:
    return not equal(lhs, rhs, context)


def greater(lhs: ObjectHolder, rhs: ObjectHolder, context: Context) -> bool:
    return not less(lhs, rhs, context) and not_equal(lhs, rhs, context)


def less_or_equal(lhs: ObjectHolder, rhs: ObjectHolder, context: Context) -> bool:
    return less(lhs, rhs, context) or equal(lhs, rhs, context)


def greater_or_equal(lhs: ObjectHolder, rhs: ObjectHolder, context: Context) -> bool:
    return not less(lhs, rhs, context)


Comparator = Callable[[ObjectHolder, ObjectHolder, Context], bool]
