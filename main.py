"""
MetaDB: Embedded Record Store
=============================
Entry point for the database shell.

Usage:
    python main.py [options] [database_file]

Options:
    --help              Show help
    --execute CMD       Execute a single command and exit
    --file PATH         Execute a command script and exit
    --no-autosave       Only write the database file on `save`
    --verbose           Debug logging to stderr

Default:
    Interactive REPL mode with database file ./metadb.json
"""

import logging
import os
import sys

DEFAULT_DB_FILE = "metadb.json"


def print_help():
    print("""
MetaDB: Embedded Record Store

Usage:
    python main.py [database_file]                 Interactive REPL
    python main.py --execute "CMD" [db_file]       Execute single command
    python main.py --file script.mdb [db_file]     Execute command script

Options:
    --help          Show this help
    --execute CMD   Execute command and exit
    --file PATH     Execute script (one command per line) and exit
    --no-autosave   Write the database file only on `save`
    --verbose       Debug logging to stderr
    database_file   Path to the database file (default: ./metadb.json)

Commands:
    create <table> | drop <table> | push <table> <json>
    pull <table> [where] [condition]
    set <table> <field>=<value> [where <condition>]
    delete <table> [where] [condition] | save
""")


def execute_single(db_file: str, command: str, autosave: bool = True):
    """Execute a single command and exit."""
    from cli.repl import REPL

    repl = REPL(db_file, autosave=autosave)
    repl.renderer.show_timer = False
    try:
        repl.session = _open_session(db_file, autosave)
        ok = repl.execute_command(command)
    finally:
        if repl.session is not None:
            _report_close(repl.session.close())
    if not ok:
        sys.exit(1)


def execute_script(db_file: str, script_path: str, autosave: bool = True):
    """
    Execute a command script and exit.

    One command per line; blank lines and lines starting with # are
    skipped. Errors stop execution.
    """
    from cli.repl import REPL

    if not os.path.isfile(script_path):
        print(f"Error: script file not found: {script_path}", file=sys.stderr)
        sys.exit(1)

    with open(script_path, "r", encoding="utf-8") as f:
        lines = f.read().splitlines()

    repl = REPL(db_file, autosave=autosave)
    repl.renderer.show_timer = False  # Cleaner script output
    repl.session = _open_session(db_file, autosave)

    try:
        for line_no, line in enumerate(lines, start=1):
            command = line.strip()
            if not command or command.startswith("#"):
                continue

            if command.startswith("."):
                print(f"# meta-command not supported in script mode: {command}",
                      file=sys.stderr)
                continue

            if not repl.execute_command(command):
                print(f"Error in line {line_no}: {command[:80]}", file=sys.stderr)
                sys.exit(1)
    finally:
        _report_close(repl.session.close())


def _open_session(db_file: str, autosave: bool):
    from cli.session import Session

    try:
        return Session(db_file, autosave=autosave)
    except Exception as e:
        print(f"Error: failed to open database '{db_file}': {e}", file=sys.stderr)
        sys.exit(1)


def _report_close(warning):
    if warning:
        print(warning, file=sys.stderr)


def main() -> None:
    """Parse CLI arguments and dispatch."""
    args = sys.argv[1:]

    if "--help" in args or "-h" in args:
        print_help()
        return

    db_file = None
    command = None
    script_file = None
    autosave = True
    verbose = False

    i = 0
    while i < len(args):
        if args[i] == "--execute" and i + 1 < len(args):
            command = args[i + 1]
            i += 2
        elif args[i] == "--file" and i + 1 < len(args):
            script_file = args[i + 1]
            i += 2
        elif args[i] == "--no-autosave":
            autosave = False
            i += 1
        elif args[i] == "--verbose":
            verbose = True
            i += 1
        elif args[i].startswith("-"):
            print(f"Unknown option: {args[i]}", file=sys.stderr)
            print_help()
            sys.exit(1)
        else:
            db_file = args[i]
            i += 1

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if db_file is None:
        db_file = os.path.join(os.getcwd(), DEFAULT_DB_FILE)

    if command:
        execute_single(db_file, command, autosave)
    elif script_file:
        execute_script(db_file, script_file, autosave)
    else:
        from cli.repl import REPL
        repl = REPL(db_file, autosave=autosave)
        repl.run()


if __name__ == "__main__":
    main()
