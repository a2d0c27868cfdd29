"""Core Wisp functionality: lexer, runtime object model, IR, evaluator, parser."""

from . import ir
from .errors import (
    ComparisonError,
    ConfigError,
    DispatchError,
    DivisionError,
    ErrorContext,
    LexError,
    OperatorTypeError,
    ParseError,
    ReturnOutsideMethodError,
    UndefinedNameError,
    WispError,
    WispRuntimeError,
)
from .evaluator import execute
from .lexer import Lexer, Token, TokenType, tokenize
from .parser import parse
from .program import run_file, run_source

__all__ = [
    "ir",
    "WispError",
    "ParseError",
    "LexError",
    "ConfigError",
    "WispRuntimeError",
    "UndefinedNameError",
    "OperatorTypeError",
    "DivisionError",
    "DispatchError",
    "ComparisonError",
    "ReturnOutsideMethodError",
    "ErrorContext",
    "Lexer",
    "Token",
    "TokenType",
    "tokenize",
    "parse",
    "execute",
    "run_source",
    "run_file",
]
