"""Console status output, logging setup, and per-operation progress logs."""

import logging
import re
import sys
import tempfile
from pathlib import Path
from typing import Optional, TextIO

logger = logging.getLogger(__name__)


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"


def print_header(text: str) -> None:
    """Print a formatted header."""
    print(f"\n{Colors.CYAN}{Colors.BOLD}{'=' * 60}{Colors.RESET}")
    print(f"{Colors.CYAN}{Colors.BOLD}{text}{Colors.RESET}")
    print(f"{Colors.CYAN}{Colors.BOLD}{'=' * 60}{Colors.RESET}\n")


def print_step(text: str) -> None:
    print(f"{Colors.BLUE}{Colors.BOLD}{text}{Colors.RESET}")


def print_success(text: str) -> None:
    print(f"{Colors.GREEN}✅ {text}{Colors.RESET}")


def print_warning(text: str) -> None:
    print(f"{Colors.YELLOW}⚠️  {text}{Colors.RESET}")


def print_error(text: str) -> None:
    print(f"{Colors.RED}❌ {text}{Colors.RESET}")


def configure_logging(level: str = "INFO") -> None:
    """Send stackrunner log records to stderr with the level and origin prefixed."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter("[%(levelname)s] %(name)s:%(lineno)d - %(message)s")
    )
    root = logging.getLogger("stackrunner")
    root.handlers = [handler]
    root.setLevel(getattr(logging, level, logging.INFO))
    root.propagate = False


class ProgressLog:
    """
    Tee engine output to the console and a temporary log file.

    Used as a context manager around one lifecycle operation; the instance
    itself is the ``on_output`` callback handed to the Automation API, which
    calls it once per line of engine output.
    """

    def __init__(self, operation: str, stack: str, log_dir: Optional[str] = None,
                 stream: Optional[TextIO] = None):
        self.operation = operation
        self.stack = stack
        self.log_dir = log_dir
        self.stream = stream
        self.path: Optional[Path] = None
        self._file: Optional[TextIO] = None

    def __enter__(self) -> "ProgressLog":
        if self.log_dir:
            Path(self.log_dir).mkdir(parents=True, exist_ok=True)
        self._file = tempfile.NamedTemporaryFile(
            mode="w",
            prefix=f"{self.operation}-{re.sub(r'[^A-Za-z0-9_.]+', '-', self.stack)}-",
            suffix=".log",
            dir=self.log_dir,
            delete=False,
        )
        self.path = Path(self._file.name)
        logger.info(f"📝 {self.operation} output for {self.stack} is logged to {self.path}")
        return self

    def __call__(self, line: str) -> None:
        stream = self.stream or sys.stdout
        text = line if line.endswith("\n") else line + "\n"
        stream.write(text)
        stream.flush()
        if self._file is not None:
            self._file.write(text)
            self._file.flush()

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None
