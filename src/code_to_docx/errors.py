from __future__ import annotations


class ConversionError(RuntimeError):
    """Fatal failure while building the document.

    ``code`` is a short machine-readable tag (``OUTPUT_EXISTS``, ``READ_FAILED``...)
    and the message is the single line shown to the user.
    """

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


# Codes raised while a single matched file is being rendered. These honour the
# read-error policy; everything else always aborts the run.
FILE_ERROR_CODES = frozenset({"READ_FAILED", "DECODE_FAILED", "INVALID_TEXT"})


__all__ = ["ConversionError", "FILE_ERROR_CODES"]
