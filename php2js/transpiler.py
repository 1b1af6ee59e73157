"""Engine entry point: PHP source text → JavaScript module text."""

from __future__ import annotations

import logging

from .backend.inject import inject_superglobal_shim
from .backend.javascript import JsBackend
from .backend.utilities import UtilityRegistry
from .errors import TranspileError
from .frontend import compile as compile_php
from .options import Options

logger = logging.getLogger(__name__)


def transpile(
    source: str,
    options: Options | None = None,
    *,
    filename: str = "<string>",
    registry: UtilityRegistry | None = None,
) -> str:
    """Transpile one PHP source unit.

    Raises ParseError on syntax errors; any other failure surfaces as
    TranspileError for the same filename. Helpers used by this unit are
    recorded in `registry` when one is given.
    """
    options = options if options is not None else Options()
    backend = JsBackend(options, registry=registry, filename=filename)
    try:
        program = compile_php(source, filename)
        code = backend.emit(program)
    except TranspileError:
        raise
    except Exception as e:
        logger.debug("transpile failed for %s", filename, exc_info=True)
        raise TranspileError(f"internal error: {type(e).__name__}: {e}", filename) from e
    backend.utilities.commit()
    if backend.uses_superglobals:
        code = inject_superglobal_shim(code)
    logger.debug(
        "%s: %d lines, exported %s, helpers %s",
        filename,
        code.count("\n"),
        ", ".join(backend.exported) or "nothing",
        ", ".join(backend.utilities.used) or "none",
    )
    return code
