"""
Statement and expression node types for the Wisp IR.

The node set is closed: the evaluator dispatches over exactly the types in
the ``Statement`` union. Expressions are statements too, so every node can
appear wherever a statement or an operand is expected.

Nodes are immutable once built. ``NewInstance`` and ``ClassDefinition`` hold
the runtime ``Class`` the parser created for the class statement.
"""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

from wisp.core.runtime import Class, Comparator

_NODE_CONFIG = ConfigDict(frozen=True, arbitrary_types_allowed=True)


# ---------------------------------------------------------------------------
# Constants and variables
# ---------------------------------------------------------------------------


class NumericConst(BaseModel):
    """An integer literal."""

    value: int

    model_config = _NODE_CONFIG

    def __str__(self) -> str:
        return str(self.value)


class StringConst(BaseModel):
    """A string literal."""

    value: str

    model_config = _NODE_CONFIG

    def __str__(self) -> str:
        return repr(self.value)


class BoolConst(BaseModel):
    """``True`` or ``False``."""

    value: bool

    model_config = _NODE_CONFIG

    def __str__(self) -> str:
        return "True" if self.value else "False"


class NoneConst(BaseModel):
    """The ``None`` literal."""

    model_config = _NODE_CONFIG

    def __str__(self) -> str:
        return "None"


class VariableValue(BaseModel):
    """
    Read of a variable, possibly through instance fields.

    Examples:
        - VariableValue(dotted_ids=["x"]) → x
        - VariableValue(dotted_ids=["self", "w"]) → self.w
    """

    dotted_ids: list[str] = Field(min_length=1, description="Variable name then field names")

    model_config = _NODE_CONFIG

    def __str__(self) -> str:
        return ".".join(self.dotted_ids)


# ---------------------------------------------------------------------------
# Binding
# ---------------------------------------------------------------------------


class Assignment(BaseModel):
    """``var = rv`` in the current scope."""

    var: str
    rv: Statement

    model_config = _NODE_CONFIG

    def __str__(self) -> str:
        return f"{self.var} = {self.rv}"


class FieldAssignment(BaseModel):
    """``target.field_name = rv`` where ``target`` evaluates to an instance."""

    target: VariableValue
    field_name: str
    rv: Statement

    model_config = _NODE_CONFIG

    def __str__(self) -> str:
        return f"{self.target}.{self.field_name} = {self.rv}"


class ClassDefinition(BaseModel):
    """Binds a class under its own name."""

    cls: Class

    model_config = _NODE_CONFIG

    def __str__(self) -> str:
        return f"class {self.cls.name}"


# ---------------------------------------------------------------------------
# Calls and output
# ---------------------------------------------------------------------------


class Print(BaseModel):
    """``print a, b, ...``: space separated, newline terminated."""

    args: list[Statement] = Field(default_factory=list)

    model_config = _NODE_CONFIG

    def __str__(self) -> str:
        return "print " + ", ".join(str(a) for a in self.args)


class MethodCall(BaseModel):
    """``target.method(args...)``."""

    target: Statement
    method: str
    args: list[Statement] = Field(default_factory=list)

    model_config = _NODE_CONFIG

    def __str__(self) -> str:
        args_str = ", ".join(str(a) for a in self.args)
        return f"{self.target}.{self.method}({args_str})"


class NewInstance(BaseModel):
    """``ClassName(args...)``: constructs an instance and runs a matching ``__init__``."""

    cls: Class
    args: list[Statement] = Field(default_factory=list)

    model_config = _NODE_CONFIG

    def __str__(self) -> str:
        args_str = ", ".join(str(a) for a in self.args)
        return f"{self.cls.name}({args_str})"


class Stringify(BaseModel):
    """``str(argument)``."""

    argument: Statement

    model_config = _NODE_CONFIG

    def __str__(self) -> str:
        return f"str({self.argument})"


# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------


class BinaryOperation(BaseModel):
    """Base for nodes with a left and a right operand."""

    lhs: Statement
    rhs: Statement

    model_config = _NODE_CONFIG

    symbol: ClassVar[str] = "?"

    def __str__(self) -> str:
        return f"({self.lhs} {self.symbol} {self.rhs})"


class Add(BinaryOperation):
    symbol: ClassVar[str] = "+"


class Sub(BinaryOperation):
    symbol: ClassVar[str] = "-"


class Mult(BinaryOperation):
    symbol: ClassVar[str] = "*"


class Div(BinaryOperation):
    symbol: ClassVar[str] = "/"


class Or(BinaryOperation):
    """Logical or; both operands are always evaluated."""

    symbol: ClassVar[str] = "or"


class And(BinaryOperation):
    """Logical and; both operands are always evaluated."""

    symbol: ClassVar[str] = "and"


class Comparison(BinaryOperation):
    """Applies one of the runtime comparators to both operands."""

    comparator: Comparator

    def __str__(self) -> str:
        return f"{self.comparator.__name__}({self.lhs}, {self.rhs})"


class Not(BaseModel):
    """Logical negation of the operand's truthiness."""

    argument: Statement

    model_config = _NODE_CONFIG

    def __str__(self) -> str:
        return f"not {self.argument}"


# ---------------------------------------------------------------------------
# Control flow
# ---------------------------------------------------------------------------


class Compound(BaseModel):
    """A sequence of statements executed in order."""

    statements: list[Statement] = Field(default_factory=list)

    model_config = _NODE_CONFIG


class Return(BaseModel):
    """Leaves the enclosing method with the value of ``statement``."""

    statement: Statement

    model_config = _NODE_CONFIG

    def __str__(self) -> str:
        return f"return {self.statement}"


class IfElse(BaseModel):
    """``if condition: if_body else: else_body``; ``else_body`` is optional."""

    condition: Statement
    if_body: Statement
    else_body: Statement | None = None

    model_config = _NODE_CONFIG


class MethodBody(BaseModel):
    """Method body boundary: the only node that stops a ``Return``."""

    body: Statement

    model_config = _NODE_CONFIG


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

Statement = (
    NumericConst
    | StringConst
    | BoolConst
    | NoneConst
    | VariableValue
    | Assignment
    | FieldAssignment
    | ClassDefinition
    | Print
    | MethodCall
    | NewInstance
    | Stringify
    | Add
    | Sub
    | Mult
    | Div
    | Or
    | And
    | Comparison
    | Not
    | Compound
    | Return
    | IfElse
    | MethodBody
)

# Rebuild models for recursive forward references
for _model in (
    Assignment,
    FieldAssignment,
    ClassDefinition,
    Print,
    MethodCall,
    NewInstance,
    Stringify,
    BinaryOperation,
    Add,
    Sub,
    Mult,
    Div,
    Or,
    And,
    Comparison,
    Not,
    Compound,
    Return,
    IfElse,
    MethodBody,
):
    _model.model_rebuild()
