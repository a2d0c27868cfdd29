"""
Recursive descent parser for Wisp programs.

Grammar (statements):
    program     → statement* EOF
    statement   → class_def | if_stmt | simple NEWLINE
    class_def   → "class" ID ["(" ID ")"] ":" NEWLINE INDENT method+ DEDENT
    method      → "def" ID "(" "self" ("," ID)* ")" ":" suite
    suite       → NEWLINE INDENT statement+ DEDENT
    if_stmt     → "if" test ":" suite ["else" ":" suite]
    simple      → "return" [test] | "print" [test ("," test)*] | test ["=" test]

Grammar (expressions, precedence low to high):
    test        → and_test ("or" and_test)*
    and_test    → not_test ("and" not_test)*
    not_test    → "not" not_test | comparison
    comparison  → arith (comp_op arith)?
    arith       → term (("+" | "-") term)*
    term        → factor (("*" | "/") factor)*
    factor      → "-" factor | primary
    primary     → NUMBER | STRING | "True" | "False" | "None" | "(" test ")"
                | "str" "(" test ")" | ClassName call_args call_chain
                | ID ("." ID)* [call_args call_chain]
    call_chain  → ("." ID call_args)*
"""

from __future__ import annotations

import logging
from pathlib import Path

from wisp.core.errors import ParseError, make_parse_error
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
from wisp.core.lexer import Lexer, Token, TokenType
from wisp.core.runtime import (
    SELF_NAME,
    Class,
    Comparator,
    Method,
    equal,
    greater,
    greater_or_equal,
    less,
    less_or_equal,
    not_equal,
)

logger = logging.getLogger(__name__)

STRINGIFY_NAME = "str"

_COMPARATORS: dict[TokenType, Comparator] = {
    TokenType.EQ: equal,
    TokenType.NOT_EQ: not_equal,
    TokenType.LESS_OR_EQ: less_or_equal,
    TokenType.GREATER_OR_EQ: greater_or_equal,
}

_CHAR_COMPARATORS: dict[str, Comparator] = {
    "<": less,
    ">": greater,
}


class Parser:
    """Recursive descent parser over a lazy token stream."""

    def __init__(self, lexer: Lexer) -> None:
        self.lexer = lexer
        self.file = lexer.file
        # Classes declared so far, for constructor calls and parent lookup
        self.classes: dict[str, Class] = {}

    @property
    def current(self) -> Token:
        return self.lexer.current_token()

    def advance(self) -> Token:
        tok = self.lexer.current_token()
        self.lexer.next_token()
        return tok

    def error(self, message: str, tok: Token | None = None) -> ParseError:
        tok = tok or self.current
        return make_parse_error(message, self.file, tok.line, tok.column)

    def expect(self, token_type: TokenType) -> Token:
        tok = self.current
        if tok.type != token_type:
            raise self.error(f"Expected {token_type.value}, got {tok}")
        return self.advance()

    def expect_char(self, char: str) -> Token:
        tok = self.current
        if not tok.is_char(char):
            raise self.error(f"Expected {char!r}, got {tok}")
        return self.advance()

    def match(self, token_type: TokenType) -> Token | None:
        if self.current.type == token_type:
            return self.advance()
        return None

    def match_char(self, char: str) -> Token | None:
        if self.current.is_char(char):
            return self.advance()
        return None

    # -- Statements --

    def parse_program(self) -> Compound:
        """program → statement* EOF"""
        statements: list[Statement] = []
        while self.current.type != TokenType.EOF:
            statements.append(self.parse_statement())
        logger.debug("Parsed %d top-level statement(s)", len(statements))
        return Compound(statements=statements)

    def parse_statement(self) -> Statement:
        if self.current.type == TokenType.CLASS:
            return self.parse_class_definition()
        if self.current.type == TokenType.IF:
            return self.parse_if()
        statement = self.parse_simple_statement()
        self.expect(TokenType.NEWLINE)
        return statement

    def parse_suite(self) -> Compound:
        """NEWLINE INDENT statement+ DEDENT"""
        self.expect(TokenType.NEWLINE)
        if self.current.type != TokenType.INDENT:
            raise self.error("Expected an indented block")
        self.advance()

        statements = [self.parse_statement()]
        while not self.match(TokenType.DEDENT):
            if self.current.type == TokenType.EOF:
                raise self.error("Unexpected end of input inside a block")
            statements.append(self.parse_statement())
        return Compound(statements=statements)

    def parse_class_definition(self) -> ClassDefinition:
        self.expect(TokenType.CLASS)
        name_tok = self.expect(TokenType.ID)

        parent: Class | None = None
        if self.match_char("("):
            parent_tok = self.expect(TokenType.ID)
            parent = self.classes.get(parent_tok.value)
            if parent is None:
                raise self.error(f"Unknown base class '{parent_tok.value}'", parent_tok)
            self.expect_char(")")

        self.expect_char(":")
        self.expect(TokenType.NEWLINE)
        if self.current.type != TokenType.INDENT:
            raise self.error(f"Class {name_tok.value} needs at least one method")
        self.advance()

        # Registered before the methods so they can construct their own class
        cls = Class(name=name_tok.value, parent=parent)
        self.classes[cls.name] = cls
        while not self.match(TokenType.DEDENT):
            cls.methods.append(self.parse_method())

        logger.debug("Parsed class %s with %d method(s)", cls.name, len(cls.methods))
        return ClassDefinition(cls=cls)

    def parse_method(self) -> Method:
        def_tok = self.expect(TokenType.DEF)
        name = self.expect(TokenType.ID).value
        self.expect_char("(")

        params: list[str] = []
        if not self.current.is_char(")"):
            params.append(self.expect(TokenType.ID).value)
            while self.match_char(","):
                params.append(self.expect(TokenType.ID).value)
        self.expect_char(")")
        self.expect_char(":")

        if not params or params[0] != SELF_NAME:
            raise self.error(f"Method {name}() must take '{SELF_NAME}' as its first parameter", def_tok)

        body = self.parse_suite()
        return Method(name=name, formal_params=params[1:], body=MethodBody(body=body))

    def parse_if(self) -> IfElse:
        self.expect(TokenType.IF)
        condition = self.parse_test()
        self.expect_char(":")
        if_body = self.parse_suite()

        else_body = None
        if self.match(TokenType.ELSE):
            self.expect_char(":")
            else_body = self.parse_suite()

        return IfElse(condition=condition, if_body=if_body, else_body=else_body)

    def parse_simple_statement(self) -> Statement:
        if self.match(TokenType.RETURN):
            if self.current.type == TokenType.NEWLINE:
                return Return(statement=NoneConst())
            return Return(statement=self.parse_test())

        if self.match(TokenType.PRINT):
            args: list[Statement] = []
            if self.current.type != TokenType.NEWLINE:
                args.append(self.parse_test())
                while self.match_char(","):
                    args.append(self.parse_test())
            return Print(args=args)

        expr = self.parse_test()
        assign_tok = self.match_char("=")
        if assign_tok is None:
            return expr

        if not isinstance(expr, VariableValue):
            raise self.error("Cannot assign to expression", assign_tok)
        rv = self.parse_test()
        *path, last = expr.dotted_ids
        if not path:
            return Assignment(var=last, rv=rv)
        return FieldAssignment(target=VariableValue(dotted_ids=path), field_name=last, rv=rv)

    # -- Expressions --

    def parse_test(self) -> Statement:
        """and_test ("or" and_test)*"""
        left = self.parse_and_test()
        while self.match(TokenType.OR):
            left = Or(lhs=left, rhs=self.parse_and_test())
        return left

    def parse_and_test(self) -> Statement:
        """not_test ("and" not_test)*"""
        left = self.parse_not_test()
        while self.match(TokenType.AND):
            left = And(lhs=left, rhs=self.parse_not_test())
        return left

    def parse_not_test(self) -> Statement:
        """'not' not_test | comparison"""
        if self.match(TokenType.NOT):
            return Not(argument=self.parse_not_test())
        return self.parse_comparison()

    def parse_comparison(self) -> Statement:
        """arith (comp_op arith)?"""
        left = self.parse_arith()

        tok = self.current
        comparator = _COMPARATORS.get(tok.type)
        if comparator is None and tok.type == TokenType.CHAR:
            comparator = _CHAR_COMPARATORS.get(tok.value)
        if comparator is None:
            return left

        self.advance()
        return Comparison(comparator=comparator, lhs=left, rhs=self.parse_arith())

    def parse_arith(self) -> Statement:
        """term (('+' | '-') term)*"""
        left = self.parse_term()
        while True:
            if self.match_char("+"):
                left = Add(lhs=left, rhs=self.parse_term())
            elif self.match_char("-"):
                left = Sub(lhs=left, rhs=self.parse_term())
            else:
                return left

    def parse_term(self) -> Statement:
        """factor (('*' | '/') factor)*"""
        left = self.parse_factor()
        while True:
            if self.match_char("*"):
                left = Mult(lhs=left, rhs=self.parse_factor())
            elif self.match_char("/"):
                left = Div(lhs=left, rhs=self.parse_factor())
            else:
                return left

    def parse_factor(self) -> Statement:
        """'-' factor | primary"""
        if self.match_char("-"):
            return Sub(lhs=NumericConst(value=0), rhs=self.parse_factor())
        return self.parse_primary()

    def parse_primary(self) -> Statement:
        tok = self.current

        if tok.type == TokenType.NUMBER:
            self.advance()
            return NumericConst(value=tok.value)
        if tok.type == TokenType.STRING:
            self.advance()
            return StringConst(value=tok.value)
        if tok.type == TokenType.TRUE:
            self.advance()
            return BoolConst(value=True)
        if tok.type == TokenType.FALSE:
            self.advance()
            return BoolConst(value=False)
        if tok.type == TokenType.NONE:
            self.advance()
            return NoneConst()

        if self.match_char("("):
            expr = self.parse_test()
            self.expect_char(")")
            return expr

        if tok.type == TokenType.ID:
            return self._parse_name()

        raise self.error(f"Unexpected token: {tok}")

    def _parse_name(self) -> Statement:
        """Variable, dotted field path, method call, constructor or str()."""
        name_tok = self.advance()
        name = name_tok.value

        if self.current.is_char("("):
            if name == STRINGIFY_NAME:
                self.advance()
                argument = self.parse_test()
                self.expect_char(")")
                return self._parse_call_chain(Stringify(argument=argument))
            cls = self.classes.get(name)
            if cls is None:
                raise self.error(f"Unknown class '{name}'", name_tok)
            return self._parse_call_chain(NewInstance(cls=cls, args=self._parse_call_args()))

        path = [name]
        while self.match_char("."):
            ident = self.expect(TokenType.ID).value
            if self.current.is_char("("):
                call = MethodCall(
                    target=VariableValue(dotted_ids=path),
                    method=ident,
                    args=self._parse_call_args(),
                )
                return self._parse_call_chain(call)
            path.append(ident)

        return VariableValue(dotted_ids=path)

    def _parse_call_chain(self, target: Statement) -> Statement:
        """('.' ID call_args)*"""
        while self.match_char("."):
            method = self.expect(TokenType.ID).value
            target = MethodCall(target=target, method=method, args=self._parse_call_args())
        return target

    def _parse_call_args(self) -> list[Statement]:
        """'(' (test (',' test)*)? ')'"""
        self.expect_char("(")
        args: list[Statement] = []
        if not self.current.is_char(")"):
            args.append(self.parse_test())
            while self.match_char(","):
                args.append(self.parse_test())
        self.expect_char(")")
        return args


def parse(text: str, file: Path | None = None) -> Compound:
    """Parse a whole program into its root ``Compound``.

    Args:
        text: Program source.
        file: Source path for error messages.

    Raises:
        ParseError: If the program is not well formed (LexError included).
    """
    return Parser(Lexer(text, file)).parse_program()
