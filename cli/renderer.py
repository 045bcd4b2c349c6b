"""
MetaDB Result Renderer
======================
Formats query results as aligned ASCII tables.

Features:
  - Streaming: prints rows as they arrive (no full materialization)
  - Sparse records: columns are the union of the field names seen in the
    sampled rows; a field missing from a row is shown empty
  - Auto-column-width with configurable max
  - Row count + elapsed time footer
  - Command message and advisory note rendering
  - Modes: table, vertical, raw
  - Configurable: headers, timer, display limit
"""

import sys
import time
from typing import Any, Dict, Iterable, Iterator, List, Optional, TextIO

from storage.types import format_number


class Renderer:
    """
    Streaming result renderer with configurable display modes.
    """

    def __init__(self, output: TextIO = None):
        self.output = output or sys.stdout
        self.mode: str = "table"        # table, vertical, raw
        self.show_headers: bool = True
        self.show_timer: bool = True
        self.display_limit: Optional[int] = None  # None = no limit
        self.max_col_width: int = 50

    # ─── Public API ─────────────────────────────────────────────────

    def render_rows(self, rows: Iterable[Dict[str, Any]]) -> int:
        """
        Render query results. Streams rows from iterator.
        Returns number of rows rendered.
        """
        start = time.perf_counter()
        rows = iter(rows)

        if self.mode == "raw":
            count = self._render_raw(rows)
        elif self.mode == "vertical":
            count = self._render_vertical(rows)
        else:
            count = self._render_table(rows)

        elapsed = time.perf_counter() - start

        if self.show_timer:
            self._print(f"\n{count} row(s) returned ({elapsed:.3f}s)")
        else:
            self._print(f"\n{count} row(s) returned")

        return count

    def render_message(self, message: str):
        """Render a command result message."""
        if message:
            self._print(message)

    def render_notes(self, notes: List[str]):
        """Render advisory notes (e.g. table-name suggestions)."""
        for note in notes:
            self._print(f"Note: {note}")

    def render_error(self, error: Exception):
        """Render an error with classification prefix."""
        prefix = self._classify_error(type(error).__name__)
        self._print(f"{prefix}: {error}")

    # ─── Table Mode (streaming with width sampling) ─────────────────

    def _render_table(self, rows: Iterator[Dict[str, Any]]) -> int:
        """
        Render rows in aligned table format.
        Buffers first batch to determine columns and widths, then streams.
        """
        buffer = []
        sample_size = 100

        first_batch = sample_size
        if self.display_limit is not None:
            first_batch = min(sample_size, self.display_limit)

        for row in rows:
            buffer.append(row)
            if len(buffer) >= first_batch:
                break

        if not buffer:
            return 0

        headers = self._collect_headers(buffer)
        widths = self._calculate_widths(headers, buffer)

        if self.show_headers:
            self._print_table_separator(widths, headers)
            self._print_table_row(widths, headers, {h: h for h in headers})
            self._print_table_separator(widths, headers)

        count = 0
        for vals in buffer:
            self._print_table_row(widths, headers, vals)
            count += 1

        # Stream remaining rows
        for row in rows:
            if self.display_limit is not None and count >= self.display_limit:
                self._print(f"... (display limit {self.display_limit} reached)")
                break
            self._print_table_row(widths, headers, row)
            count += 1

        if self.show_headers:
            self._print_table_separator(widths, headers)

        return count

    def _collect_headers(self, rows: List[Dict[str, Any]]) -> List[str]:
        """Union of field names, in first-seen order."""
        headers: Dict[str, None] = {}
        for row in rows:
            for key in row:
                headers.setdefault(key, None)
        return list(headers)

    def _calculate_widths(self, headers: List[str], rows: List[Dict]) -> Dict[str, int]:
        """Calculate column widths from headers and sample rows."""
        widths = {}
        for h in headers:
            widths[h] = min(len(h), self.max_col_width)

        for row in rows:
            for h in headers:
                val = self._format_value(row.get(h))
                widths[h] = max(widths[h], min(len(val), self.max_col_width))

        return widths

    def _print_table_separator(self, widths: Dict[str, int], headers: List[str]):
        """Print +----+------+ separator line."""
        parts = ["+"]
        for h in headers:
            parts.append("-" * (widths[h] + 2) + "+")
        self._print("".join(parts))

    def _print_table_row(self, widths: Dict[str, int], headers: List[str], vals: Dict):
        """Print | col1 | col2 | row."""
        parts = ["|"]
        for h in headers:
            val_str = self._format_value(vals.get(h))
            if len(val_str) > self.max_col_width:
                val_str = val_str[:self.max_col_width - 3] + "..."
            w = widths[h]
            # Right-align numbers, left-align text
            if isinstance(vals.get(h), (int, float)):
                parts.append(f" {val_str:>{w}} |")
            else:
                parts.append(f" {val_str:<{w}} |")
        self._print("".join(parts))

    # ─── Vertical Mode ──────────────────────────────────────────────

    def _render_vertical(self, rows: Iterator[Dict[str, Any]]) -> int:
        """Render each row as key: value pairs (only the fields it has)."""
        count = 0

        for row in rows:
            if self.display_limit is not None and count >= self.display_limit:
                self._print(f"... (display limit {self.display_limit} reached)")
                break

            count += 1
            self._print(f"*** Row {count} ***")
            max_key_len = max((len(k) for k in row), default=0)
            for key, value in row.items():
                self._print(f"  {key:>{max_key_len}}: {self._format_value(value)}")

        return count

    # ─── Raw Mode ───────────────────────────────────────────────────

    def _render_raw(self, rows: Iterator[Dict[str, Any]]) -> int:
        """Render each row as field=value pairs separated by pipes."""
        count = 0

        for row in rows:
            if self.display_limit is not None and count >= self.display_limit:
                break
            parts = [f"{k}={self._format_value(v)}" for k, v in row.items()]
            self._print("|".join(parts))
            count += 1

        return count

    # ─── Helpers ────────────────────────────────────────────────────

    def _format_value(self, value) -> str:
        """Format a single value for display (missing field -> empty)."""
        if value is None:
            return ""
        if isinstance(value, float):
            if value.is_integer():
                return format_number(value)
            return f"{value:.6g}"
        return str(value)

    def _classify_error(self, error_type: str) -> str:
        """Map error class name to user-friendly prefix."""
        mapping = {
            "ConditionParseError": "SyntaxError",
            "SessionError": "CommandError",
            "UnsupportedOperatorError": "QueryError",
            "TypeMismatchError": "TypeError",
            "TableNotFoundError": "CatalogError",
            "AmbiguousTableNameError": "CatalogError",
            "DuplicateTableError": "CatalogError",
            "LoadError": "LoadError",
            "ValueError": "ExecutionError",
            "TypeError": "ExecutionError",
            "KeyboardInterrupt": "Interrupted",
        }
        return mapping.get(error_type, f"Error[{error_type}]")

    def _print(self, text: str):
        """Print a line to the output stream."""
        print(text, file=self.output)
