"""
Statement evaluator for Wisp programs.

A tree-walking interpreter over the closed IR node set. Each node runs
against a ``Closure`` (the current variable scope) and a ``Context`` (the
output sink) and yields an ``ObjectHolder``.

``return`` is not an exception: executing a statement yields either a plain
holder or a ``Returning`` signal. Composite statements hand the signal back
unexamined and only ``MethodBody`` turns it into the method's value.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass

from wisp.core.errors import (
    DispatchError,
    DivisionError,
    OperatorTypeError,
    ReturnOutsideMethodError,
    UndefinedNameError,
)
from wisp.core.ir import (
    Add,
    And,
    Assignment,
    BoolConst,
    ClassDefinition,
    Comparison,
    Compound,
    Div,
    FieldAssignment,
    IfElse,
    MethodBody,
    MethodCall,
    Mult,
    NewInstance,
    NoneConst,
    Not,
    NumericConst,
    Or,
    Print,
    Return,
    Statement,
    Stringify,
    StringConst,
    Sub,
    VariableValue,
)
from wisp.core.runtime import (
    ADD_METHOD,
    INIT_METHOD,
    Bool,
    ClassInstance,
    Closure,
    Context,
    Number,
    ObjectHolder,
    String,
    is_true,
    type_name,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Returning:
    """A ``return`` on its way out to the enclosing method body."""

    value: ObjectHolder


Outcome = ObjectHolder | Returning


def execute(statement: Statement, closure: Closure, context: Context) -> ObjectHolder:
    """Execute a statement and return its value.

    Args:
        statement: IR node to run.
        closure: Variable scope; assignments are written into it.
        context: Execution context providing the output sink.

    Returns:
        The statement's value (a null holder for ``None``).

    Raises:
        WispRuntimeError: If execution fails.
        ReturnOutsideMethodError: If a ``return`` escapes ``statement``.
    """
    outcome = _execute(statement, closure, context)
    if isinstance(outcome, Returning):
        raise ReturnOutsideMethodError("'return' outside method")
    return outcome


def _execute(node: Statement, closure: Closure, ctx: Context) -> Outcome:
    """Dispatch execution to the appropriate handler."""
    if isinstance(node, NumericConst):
        return ObjectHolder.own(Number(node.value))

    if isinstance(node, StringConst):
        return ObjectHolder.own(String(node.value))

    if isinstance(node, BoolConst):
        return ObjectHolder.own(Bool(node.value))

    if isinstance(node, NoneConst):
        return ObjectHolder.none()

    if isinstance(node, VariableValue):
        return _execute_variable(node, closure)

    if isinstance(node, Assignment):
        value = execute(node.rv, closure, ctx)
        closure[node.var] = value
        return value

    if isinstance(node, FieldAssignment):
        return _execute_field_assignment(node, closure, ctx)

    if isinstance(node, ClassDefinition):
        logger.debug("Defining class %s", node.cls.name)
        holder = ObjectHolder.own(node.cls)
        closure[node.cls.name] = holder
        return holder

    if isinstance(node, Print):
        return _execute_print(node, closure, ctx)

    if isinstance(node, MethodCall):
        return _execute_method_call(node, closure, ctx)

    if isinstance(node, NewInstance):
        return _execute_new_instance(node, closure, ctx)

    if isinstance(node, Stringify):
        return _execute_stringify(node, closure, ctx)

    if isinstance(node, Add):
        return _add(execute(node.lhs, closure, ctx), execute(node.rhs, closure, ctx), ctx)

    if isinstance(node, (Sub, Mult, Div)):
        return _arithmetic(node, execute(node.lhs, closure, ctx), execute(node.rhs, closure, ctx))

    if isinstance(node, Or):
        left = is_true(execute(node.lhs, closure, ctx))
        right = is_true(execute(node.rhs, closure, ctx))
        return ObjectHolder.own(Bool(left or right))

    if isinstance(node, And):
        left = is_true(execute(node.lhs, closure, ctx))
        right = is_true(execute(node.rhs, closure, ctx))
        return ObjectHolder.own(Bool(left and right))

    if isinstance(node, Not):
        return ObjectHolder.own(Bool(not is_true(execute(node.argument, closure, ctx))))

    if isinstance(node, Comparison):
        lhs = execute(node.lhs, closure, ctx)
        rhs = execute(node.rhs, closure, ctx)
        return ObjectHolder.own(Bool(node.comparator(lhs, rhs, ctx)))

    if isinstance(node, Compound):
        for statement in node.statements:
            outcome = _execute(statement, closure, ctx)
            if isinstance(outcome, Returning):
                return outcome
        return ObjectHolder.none()

    if isinstance(node, Return):
        return Returning(execute(node.statement, closure, ctx))

    if isinstance(node, IfElse):
        if is_true(execute(node.condition, closure, ctx)):
            return _execute(node.if_body, closure, ctx)
        if node.else_body is not None:
            return _execute(node.else_body, closure, ctx)
        return ObjectHolder.none()

    if isinstance(node, MethodBody):
        outcome = _execute(node.body, closure, ctx)
        if isinstance(outcome, Returning):
            return outcome.value
        return ObjectHolder.none()

    raise TypeError(f"Unknown statement type: {type(node).__name__}")


def _execute_variable(node: VariableValue, closure: Closure) -> ObjectHolder:
    """Resolve a variable, then each dotted segment as a field of the previous instance."""
    name, *fields = node.dotted_ids
    if name not in closure:
        raise UndefinedNameError(name)
    value = closure[name]

    for field_name in fields:
        instance = value.try_as(ClassInstance)
        if instance is None:
            raise DispatchError(
                f"Cannot read field '{field_name}' of '{type_name(value)}': not a class instance"
            )
        if field_name not in instance.fields:
            raise UndefinedNameError(
                field_name,
                f"'{instance.cls.name}' object has no field '{field_name}'",
            )
        value = instance.fields[field_name]

    return value


def _execute_field_assignment(node: FieldAssignment, closure: Closure, ctx: Context) -> ObjectHolder:
    target = _execute_variable(node.target, closure)
    instance = target.try_as(ClassInstance)
    if instance is None:
        raise DispatchError(
            f"Cannot set field '{node.field_name}' on '{type_name(target)}': not a class instance"
        )
    value = execute(node.rv, closure, ctx)
    instance.fields[node.field_name] = value
    return value


def _execute_print(node: Print, closure: Closure, ctx: Context) -> ObjectHolder:
    """Write each argument as it is evaluated, separated by single spaces."""
    out = ctx.output
    for index, arg in enumerate(node.args):
        if index:
            out.write(" ")
        value = execute(arg, closure, ctx)
        if value:
            value.get().print(out, ctx)
        else:
            out.write("None")
    out.write("\n")
    return ObjectHolder.none()


def _execute_method_call(node: MethodCall, closure: Closure, ctx: Context) -> ObjectHolder:
    target = execute(node.target, closure, ctx)
    instance = target.try_as(ClassInstance)
    if instance is None:
        raise DispatchError(
            f"Cannot call method {node.method}() on '{type_name(target)}': not a class instance",
            method=node.method,
            arity=len(node.args),
        )
    args = [execute(arg, closure, ctx) for arg in node.args]
    return instance.call(node.method, args, ctx)


def _execute_new_instance(node: NewInstance, closure: Closure, ctx: Context) -> ObjectHolder:
    """Create an instance; a ``__init__`` is run only if one matches the argument count."""
    instance = ClassInstance(node.cls)
    holder = ObjectHolder.own(instance)
    logger.debug("Creating instance of %s", node.cls.name)

    if instance.has_method(INIT_METHOD, len(node.args)):
        args = [execute(arg, closure, ctx) for arg in node.args]
        instance.call(INIT_METHOD, args, ctx)

    return holder


def _execute_stringify(node: Stringify, closure: Closure, ctx: Context) -> ObjectHolder:
    value = execute(node.argument, closure, ctx)
    if not value:
        return ObjectHolder.own(String("None"))
    buffer = io.StringIO()
    value.get().print(buffer, ctx)
    return ObjectHolder.own(String(buffer.getvalue()))


def _add(lhs: ObjectHolder, rhs: ObjectHolder, ctx: Context) -> ObjectHolder:
    """Numbers add, strings concatenate, instances delegate to ``__add__``."""
    left, right = lhs.get(), rhs.get()
    if isinstance(left, Number) and isinstance(right, Number):
        return ObjectHolder.own(Number(left.value + right.value))
    if isinstance(left, String) and isinstance(right, String):
        return ObjectHolder.own(String(left.value + right.value))
    if rhs and isinstance(left, ClassInstance) and left.has_method(ADD_METHOD, 1):
        return left.call(ADD_METHOD, [rhs], ctx)
    raise OperatorTypeError("+", type_name(lhs), type_name(rhs))


def _arithmetic(node: Sub | Mult | Div, lhs: ObjectHolder, rhs: ObjectHolder) -> ObjectHolder:
    left, right = lhs.get(), rhs.get()
    if not (isinstance(left, Number) and isinstance(right, Number)):
        raise OperatorTypeError(node.symbol, type_name(lhs), type_name(rhs))

    if isinstance(node, Sub):
        return ObjectHolder.own(Number(left.value - right.value))
    if isinstance(node, Mult):
        return ObjectHolder.own(Number(left.value * right.value))

    # Any divisor that is not positive is rejected, negative ones included
    if not right.value > 0:
        raise DivisionError("Division by zero")
    return ObjectHolder.own(Number(_truncating_div(left.value, right.value)))


def _truncating_div(dividend: int, divisor: int) -> int:
    """Integer division rounding toward zero."""
    quotient = abs(dividend) // abs(divisor)
    if (dividend < 0) != (divisor < 0):
        return -quotient
    return quotient
