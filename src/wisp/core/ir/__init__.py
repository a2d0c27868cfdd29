"""
Wisp Intermediate Representation (IR) types.

The parser produces a tree of these nodes; the evaluator executes it.
All node types are re-exported from this package.
"""

from .statements import (
    Add,
    And,
    Assignment,
    BinaryOperation,
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

__all__ = [
    "Add",
    "And",
    "Assignment",
    "BinaryOperation",
    "BoolConst",
    "ClassDefinition",
    "Comparison",
    "Compound",
    "Div",
    "FieldAssignment",
    "IfElse",
    "MethodBody",
    "MethodCall",
    "Mult",
    "NewInstance",
    "NoneConst",
    "Not",
    "NumericConst",
    "Or",
    "Print",
    "Return",
    "Statement",
    "Stringify",
    "StringConst",
    "Sub",
    "VariableValue",
]
