"""Build log sink that notification steps write operator-facing lines to."""

import sys
import traceback
from typing import TextIO


class TaskListener:
    """
    Wraps the build's own console output.

    Lines written here end up in the build log the operator reads, separate
    from process-level logging.
    """

    def __init__(self, stream: TextIO | None = None):
        self.stream = stream if stream is not None else sys.stderr

    def println(self, message: str) -> None:
        print(message, file=self.stream, flush=True)

    def error(self, message: str) -> None:
        self.println(f"ERROR: {message}")

    def print_exception(self, exc: BaseException) -> None:
        traceback.print_exception(type(exc), exc, exc.__traceback__, file=self.stream)
