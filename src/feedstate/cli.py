import logging
import sys
import typer
from pathlib import Path
from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from feedstate.config import settings
from feedstate.errors import StateError
from feedstate.logging import logger, get_run_id, new_run_id

app = typer.Typer(no_args_is_help=True)

@app.callback()
def main():
    """
    Feed store backup and restore CLI.
    """
    logging.getLogger().setLevel(settings.LOG_LEVEL)

def _backup_path(path: Optional[Path]) -> Path:
    return path if path is not None else settings.backup_path

@app.command(name="doctor")
def doctor():
    """
    Check configuration and the database tables.
    """
    from feedstate.catalog import TABLES

    logger.info("Running doctor check...")

    print("\n🩺 Feedstate Doctor\n")
    print(f"Python: {sys.version.split()[0]}")
    print(f"Run ID: {get_run_id()}")

    print("\n[Configuration]")
    print(f"DATA_DIR:                 {settings.DATA_DIR}")
    print(f"DB_NAME:                  {settings.DB_NAME}")
    print(f"BACKUP_FILE:              {settings.BACKUP_FILE}")
    print(f"VALIDATE_FIRST_ROW_ONLY:  {settings.VALIDATE_FIRST_ROW_ONLY}")

    print("\n[Tables]")
    for table in TABLES:
        print(f"{table.table_name}: {', '.join(c.name for c in table.data_columns())}")

    data_dir = Path(settings.DATA_DIR)
    if data_dir.exists() and data_dir.is_dir():
        print(f"\n[Data Directory]          ✅ Found: {data_dir.absolute()}")
    else:
        print(f"\n[Data Directory]          ❌ Missing: {data_dir.absolute()} (run `feedstate db init`)")

    print("\nDoctor check complete.")


db_app = typer.Typer(help="Database management commands.")
app.add_typer(db_app, name="db")

@db_app.command("init")
def init():
    """Create the feed tables."""
    from feedstate.db import init_db
    try:
        init_db()
        logger.info("Database initialized successfully.")
        print("✅ Database initialized.")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        print(f"❌ Failed: {e}")
        raise typer.Exit(code=1)

@app.command("export")
def export(path: Optional[Path] = typer.Argument(None, help="Backup file to write")):
    """Write every feed and entry to a JSON backup."""
    from feedstate.catalog import TABLES
    from feedstate.db import get_factory
    from feedstate.state import write_json_file

    new_run_id()
    target = _backup_path(path)
    try:
        counts = write_json_file(target, get_factory(), TABLES)
    except (StateError, SQLAlchemyError, OSError) as e:
        logger.error(f"Export failed: {e}")
        print(f"❌ Failed: {e}")
        raise typer.Exit(code=1)

    for name, count in counts.items():
        print(f"{name}: {count} rows")
    print(f"✅ Exported to {target}")

@app.command("import")
def import_(
    path: Optional[Path] = typer.Argument(None, help="Backup file to read"),
    first_row_only: Optional[bool] = typer.Option(
        None, "--first-row-only/--all-rows", help="Only check the first row of each table before replacing data"
    ),
):
    """Replace every feed and entry with the contents of a JSON backup."""
    from feedstate.catalog import TABLES
    from feedstate.db import get_factory
    from feedstate.state import read_json_file

    new_run_id()
    source = _backup_path(path)
    if first_row_only is None:
        first_row_only = settings.VALIDATE_FIRST_ROW_ONLY
    try:
        counts = read_json_file(source, get_factory(), TABLES, first_row_only=first_row_only)
    except (StateError, SQLAlchemyError, OSError) as e:
        logger.error(f"Import failed: {e}")
        print(f"❌ Failed: {e}")
        raise typer.Exit(code=1)

    for name, count in counts.items():
        print(f"{name}: {count} rows")
    print(f"✅ Imported from {source}")

@app.command("verify")
def verify(path: Optional[Path] = typer.Argument(None, help="Backup file to check")):
    """Check a JSON backup against the table definitions without importing it."""
    from feedstate.catalog import TABLES
    from feedstate.reader import parse, verify as verify_document

    source = _backup_path(path)
    try:
        with open(source, "r", encoding="utf-8") as f:
            verify_document(parse(f), TABLES)
    except (StateError, OSError) as e:
        logger.error(f"Verify failed: {e}")
        print(f"❌ Invalid: {e}")
        raise typer.Exit(code=1)

    print(f"✅ {source} is a valid backup.")

if __name__ == "__main__":
    app()
