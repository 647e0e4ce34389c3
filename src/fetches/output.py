"""Terminal output for the fetches command line.

A response is shown in three parts, split across the two streams:

* **status line** (stderr) -- ``HTTP 200 OK``, coloured by status class.
* **headers** (stderr) -- only with ``--include``.
* **body** (stdout, or the ``--output`` file) -- nothing else is written to
  stdout, so the body can be piped into ``jq`` or another tool.

Warnings, errors and ``--verbose`` debug messages also go to stderr.

The body renderer depends on the format. ``RICH`` (the default on a colour
terminal) syntax-highlights JSON, XML, HTML and YAML bodies. ``PLAIN`` and
``JSON`` print indented JSON for structured bodies and text bodies as they
arrived. With ``JSON`` and ``--include`` the whole envelope (status,
headers, body) is printed to stdout as a single JSON document.

Colour is disabled by ``NO_COLOR``, ``TERM=dumb`` or ``--no-color``.

The global :class:`OutputManager` is installed with :func:`set_output`;
:func:`info`, :func:`warning`, :func:`error` and :func:`debug` delegate to
it.
"""

from __future__ import annotations

import json
import os
import sys
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table


class OutputFormat(str, Enum):
    """How response bodies are rendered. ``AUTO`` resolves at construction."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


_STATUS_STYLES = {2: "green", 3: "cyan", 4: "yellow", 5: "bold red"}

_LEXERS = (
    ("json", "json"),
    ("xml", "xml"),
    ("html", "html"),
    ("yaml", "yaml"),
)


class OutputManager:
    """Renders response envelopes and diagnostics.

    Args:
        format: Body format; ``AUTO`` picks ``RICH`` on a colour TTY and
            ``PLAIN`` otherwise.
        no_color: Disable colour and markup.
        quiet: Hide the status line and informational messages.
        verbose: Show debug messages.
        output_file: Write bodies to this path instead of stdout.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
        output_file: Optional[Union[str, Path]] = None,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self.output_file = output_file

        if format == OutputFormat.AUTO:
            format = OutputFormat.RICH if _is_tty() and not self._no_color else OutputFormat.PLAIN
        self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=format == OutputFormat.RICH,
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    # ------------------------------------------------------------------ #
    # Response envelope
    # ------------------------------------------------------------------ #

    def print_status(self, status: int, reason: str = "") -> None:
        """Print the ``HTTP <status> <reason>`` line. Hidden by ``--quiet``."""
        if self._quiet:
            return
        line = f"HTTP {status} {reason}".rstrip()
        if self._no_color:
            self._err(line)
        else:
            style = _STATUS_STYLES.get(status // 100, "bold")
            self._stderr.print(f"[{style}]{line}[/{style}]", highlight=False)

    def print_headers(self, headers: Mapping[str, str]) -> None:
        """Print response headers, one per line, to stderr."""
        if self._no_color:
            for name, value in headers.items():
                self._err(f"{name}: {value}")
            return
        table = Table(show_header=False, box=None, pad_edge=False)
        table.add_column(style="bold")
        table.add_column()
        for name, value in headers.items():
            table.add_row(f"{name}:", value)
        self._stderr.print(table)

    def print_body(self, data: Any, content_type: str = "") -> None:
        """Render a decoded body to stdout or :attr:`output_file`."""
        text = _body_text(data, reparse_json=self._format == OutputFormat.JSON)

        if self.output_file:
            with open(self.output_file, "w", encoding="utf-8") as f:
                f.write(text if text.endswith("\n") else text + "\n")
            return

        lexer = _lexer_for(content_type, data)
        if self._format == OutputFormat.RICH and lexer:
            self._stdout.print(Syntax(text, lexer, theme="monokai", word_wrap=True))
        else:
            print(text, file=sys.stdout, flush=True)

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        if not self._quiet:
            self._err(message)

    def warning(self, message: str) -> None:
        if self._no_color:
            self._err(f"Warning: {message}")
        else:
            self._stderr.print(f"[yellow]Warning:[/yellow] {message}")

    def error(self, message: str) -> None:
        """Never suppressed."""
        if self._no_color:
            self._err(f"Error: {message}")
        else:
            self._stderr.print(f"[bold red]Error:[/bold red] {message}")

    def debug(self, message: str) -> None:
        if not self._verbose:
            return
        if self._no_color:
            self._err(f"[debug] {message}")
        else:
            self._stderr.print(f"[dim]\\[debug] {message}[/dim]")

    def _err(self, text: str) -> None:
        print(text, file=sys.stderr, flush=True)


# ------------------------------------------------------------------ #
# Rendering helpers
# ------------------------------------------------------------------ #


def _body_text(data: Any, reparse_json: bool = False) -> str:
    """Text form of a body: indented JSON for structured data."""
    if isinstance(data, bytes):
        data = data.decode("utf-8", errors="replace")
    if isinstance(data, str):
        if not reparse_json:
            return data
        try:
            data = json.loads(data)
        except ValueError:
            return data
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def _lexer_for(content_type: str, data: Any) -> Optional[str]:
    if not isinstance(data, (str, bytes)):
        return "json"
    content_type = content_type.lower()
    for marker, lexer in _LEXERS:
        if marker in content_type:
            return lexer
    return None


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is set (any value) or ``TERM=dumb``."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the global :class:`OutputManager`, creating a default one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Drop the global :class:`OutputManager` so the next use builds a fresh one."""
    global _output
    _output = None


def info(message: str) -> None:
    get_output().info(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def debug(message: str) -> None:
    get_output().debug(message)
