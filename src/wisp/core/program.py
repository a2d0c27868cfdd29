"""
Program driver: parse source text and run it.

Usage:
    from wisp.core.program import run_source

    run_source('print "hello"')
"""

from __future__ import annotations

import logging
from pathlib import Path

from wisp.core.errors import WispRuntimeError
from wisp.core.evaluator import execute
from wisp.core.parser import parse
from wisp.core.runtime import Closure, Context

logger = logging.getLogger(__name__)


def run_source(
    text: str,
    context: Context | None = None,
    closure: Closure | None = None,
    file: Path | None = None,
) -> Closure:
    """Parse and execute a program.

    Args:
        text: Program source.
        context: Execution context; output goes to stdout by default.
        closure: Global scope to run in; a fresh empty one by default.
        file: Source path for error messages.

    Returns:
        The global scope after execution.

    Raises:
        ParseError: If the program does not parse.
        WispRuntimeError: If execution fails.
    """
    program = parse(text, file)
    context = context if context is not None else Context()
    closure = closure if closure is not None else {}

    logger.debug("Executing %s", file or "<input>")
    try:
        execute(program, closure, context)
    except RecursionError as e:
        raise WispRuntimeError("Maximum call depth exceeded") from e
    return closure


def run_file(path: Path, context: Context | None = None) -> Closure:
    """Read a program from ``path`` and run it."""
    return run_source(path.read_text(encoding="utf-8"), context=context, file=path)
