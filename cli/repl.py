"""
MetaDB Interactive REPL
=======================
Interactive command-line shell with metadb> prompt.

Features:
  - One command per line (see cli.session for the command language)
  - Meta-commands (dot-prefixed)
  - Ctrl+C: cancel current input
  - Ctrl+D/EOF: exit (unsaved changes reported when autosave is off)
  - Persistent readline history (~/.metadb_history)
  - Error classification and display
"""

import os
import sys
from typing import Optional

from cli.session import Session
from cli.renderer import Renderer


# ─── History ────────────────────────────────────────────────────────
HISTORY_FILE = os.path.expanduser("~/.metadb_history")
HISTORY_MAX = 1000

try:
    import readline
    _HAS_READLINE = True
except ImportError:
    try:
        import pyreadline3 as readline
        _HAS_READLINE = True
    except ImportError:
        _HAS_READLINE = False


def _load_history():
    if _HAS_READLINE and os.path.exists(HISTORY_FILE):
        try:
            readline.read_history_file(HISTORY_FILE)
        except OSError:
            pass


def _save_history():
    if _HAS_READLINE:
        try:
            readline.set_history_length(HISTORY_MAX)
            readline.write_history_file(HISTORY_FILE)
        except OSError:
            pass


# ─── REPL ───────────────────────────────────────────────────────────

class REPL:
    """
    Interactive MetaDB shell.

    Usage:
        repl = REPL("path/to/metadb.json")
        repl.run()
    """

    PROMPT = "metadb> "

    def __init__(self, db_file: str, *, autosave: bool = True, renderer: Renderer = None):
        self.db_file = db_file
        self.autosave = autosave
        self.session: Optional[Session] = None
        self.renderer = renderer or Renderer()
        self._running = False

    def run(self):
        """Main REPL loop."""
        try:
            self.session = Session(self.db_file, autosave=self.autosave)
        except Exception as e:
            print(f"Error: failed to open database '{self.db_file}': {e}", file=sys.stderr)
            return

        _load_history()
        self._running = True

        print("MetaDB v0.1.0")
        print(f"Database: {self.session.db_file}")
        print('Type ".help" for usage hints.')
        print()

        try:
            while self._running:
                try:
                    line = input(self.PROMPT)
                except KeyboardInterrupt:
                    print()
                    continue
                except EOFError:
                    print()
                    break
                self.handle_line(line)
        finally:
            _save_history()
            self._shutdown()

    def handle_line(self, line: str):
        """Dispatch one input line (meta-command or database command)."""
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            return
        if stripped.startswith("."):
            self._handle_meta_command(stripped)
        else:
            self.execute_command(stripped)

    # ─── Command Execution ──────────────────────────────────────────

    def execute_command(self, command: str) -> bool:
        """Execute a single command with error handling. Returns success."""
        try:
            rows, message, notes = self.session.execute(command)
            self.renderer.render_notes(notes)
            if rows is not None:
                self.renderer.render_rows(rows)
            elif message:
                self.renderer.render_message(message)
            return True
        except KeyboardInterrupt:
            print("\nCommand interrupted.")
            return False
        except Exception as e:
            self.renderer.render_error(e)
            return False

    # ─── Meta-Commands ──────────────────────────────────────────────

    def _handle_meta_command(self, line: str):
        """Handle dot-prefixed meta-commands."""
        parts = line.split(None, 1)
        cmd = parts[0].lower()
        arg = parts[1].strip() if len(parts) > 1 else ""

        if cmd in (".quit", ".exit", ".q"):
            self._running = False
        elif cmd == ".help":
            self._cmd_help()
        elif cmd == ".tables":
            self._cmd_tables()
        elif cmd == ".schema":
            self._cmd_schema(arg)
        elif cmd == ".mode":
            self._cmd_mode(arg)
        elif cmd == ".timer":
            self._cmd_timer(arg)
        elif cmd == ".headers":
            self._cmd_headers(arg)
        elif cmd == ".limit":
            self._cmd_limit(arg)
        elif cmd == ".stats":
            self._cmd_stats()
        else:
            print(f"Unknown command: {cmd}. Type .help for available commands.")

    def _cmd_help(self):
        print("""MetaDB Commands:
  create <table>                          Create an empty table
  drop <table>                            Drop a table
  push <table> <json object>              Insert a record
  pull <table> [where] [condition]        Query records
  set <table> <field>=<value> [where <condition>]
                                          Update matching records
  delete <table> [where] [condition]      Delete matching records
  save                                    Write the database file

Conditions:
  <field> <op> <literal>   op: == != >= <= > <   e.g. age >= 18, name == "ann"
  An empty condition matches every record.

Meta-commands:
  .help                Show this help
  .tables              List all tables
  .schema [TABLE]      Show field types
  .mode table|vertical|raw  Set output mode (default: table)
  .timer on|off        Toggle query timing display
  .headers on|off      Toggle column headers
  .limit N|off         Set display row limit
  .stats               Show session statistics
  .quit                Exit (aliases: .exit, .q)""")

    def _cmd_tables(self):
        tables = self.session.database.list_tables()
        if not tables:
            print("No tables.")
        else:
            for t in tables:
                print(f"  {t}")

    def _cmd_schema(self, table_name: str):
        db = self.session.database
        if not table_name:
            tables = db.list_tables()
            if not tables:
                print("No tables.")
                return
            for t in tables:
                self._print_table_schema(t)
                print()
        elif table_name not in db:
            print(f"Table '{table_name}' not found.")
        else:
            self._print_table_schema(table_name)

    def _print_table_schema(self, table_name: str):
        table = self.session.database.get_table(table_name)
        print(f"Table: {table.name} ({table.row_count} row(s))")
        for field, field_type in table.field_types.as_dict().items():
            print(f"  {field:<20} {field_type.value}")

    def _cmd_mode(self, arg: str):
        valid = ("table", "vertical", "raw")
        if arg.lower() in valid:
            self.renderer.mode = arg.lower()
            print(f"Output mode: {arg.lower()}")
        else:
            print(f"Usage: .mode {{{' | '.join(valid)}}}")
            print(f"Current: {self.renderer.mode}")

    def _cmd_timer(self, arg: str):
        if arg.lower() in ("on", "1", "true"):
            self.renderer.show_timer = True
            print("Timer ON")
        elif arg.lower() in ("off", "0", "false"):
            self.renderer.show_timer = False
            print("Timer OFF")
        else:
            print(f"Timer is {'ON' if self.renderer.show_timer else 'OFF'}")

    def _cmd_headers(self, arg: str):
        if arg.lower() in ("on", "1", "true"):
            self.renderer.show_headers = True
            print("Headers ON")
        elif arg.lower() in ("off", "0", "false"):
            self.renderer.show_headers = False
            print("Headers OFF")
        else:
            print(f"Headers are {'ON' if self.renderer.show_headers else 'OFF'}")

    def _cmd_limit(self, arg: str):
        if arg.lower() in ("off", "none", "0"):
            self.renderer.display_limit = None
            print("Display limit OFF")
        elif arg.isdigit() and int(arg) > 0:
            self.renderer.display_limit = int(arg)
            print(f"Display limit: {arg} rows")
        else:
            current = self.renderer.display_limit or "OFF"
            print("Usage: .limit N | .limit off")
            print(f"Current: {current}")

    def _cmd_stats(self):
        s = self.session.stats
        print("Session Statistics:")
        print(f"  Commands executed: {s['commands_executed']}")
        print(f"  Rows returned:     {s['rows_returned']}")
        print(f"  Saves:             {s['saves']}")
        print(f"  Unsaved changes:   {self.session.unsaved_changes}")
        print(f"  Autosave:          {'ON' if self.session.autosave else 'OFF'}")

    # ─── Helpers ────────────────────────────────────────────────────

    def _shutdown(self):
        """Clean shutdown: close session, warn about unsaved changes."""
        if self.session is not None:
            warning = self.session.close()
            if warning:
                print(warning, file=sys.stderr)
            print("Goodbye.")
