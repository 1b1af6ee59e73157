"""Exceptions raised by the transpiler."""


class TranspileError(Exception):
    """Transpile failure for one source unit, with location info."""

    def __init__(self, msg: str, filename: str = "<string>", lineno: int = 0, col: int = 0):
        self.msg: str = msg
        self.filename: str = filename
        self.lineno: int = lineno
        self.col: int = col
        super().__init__(msg)

    def __str__(self) -> str:
        if self.lineno:
            return f"{self.filename}:{self.lineno}:{self.col}: {self.msg}"
        return f"{self.filename}: {self.msg}"


class ParseError(TranspileError):
    """Syntax error reported by the PHP parser."""
