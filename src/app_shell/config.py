import logging
from pathlib import Path

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.config.models import Settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once per process."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)


def prepare_database(settings: Settings) -> list[str]:
    """
    Validate storage requirements before startup and apply pending migrations.

    Returns the migration filenames applied by this call.
    """
    migrations_dir = Path(settings.database.migrations_dir)
    if not migrations_dir.is_dir():
        raise FileNotFoundError(f"Migrations directory not found at: {migrations_dir}")

    # Create the data directory on first boot
    db_path = Path(settings.database.path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    applied = SQLiteMigrator(str(db_path), str(migrations_dir)).run_migrations()
    if applied:
        logger.info("Database %s migrated: %s", db_path, ", ".join(applied))
    return applied
