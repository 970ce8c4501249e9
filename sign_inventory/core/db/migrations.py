"""
Forward-only schema migrations for the local store.

The schema version lives in SQLite's PRAGMA user_version. Each step moves
the store one version forward and either preserves a table (create it if
absent, keep its rows) or recreates it (drop and create empty, used when a
table's shape changed). A version newer than SCHEMA_VERSION cannot be
migrated and raises SchemaVersionConflict so the store can be rebuilt.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Sequence

from alembic.runtime.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import inspect, text
from sqlalchemy.engine import Connection

from sign_inventory.core.db.base import Base
from sign_inventory.core.exceptions import SchemaVersionConflict

# Every model must be registered on Base.metadata before steps look tables up by name
from sign_inventory.modules.catalog.models import CachedArea, CachedSite, CatalogSnapshot  # noqa: F401
from sign_inventory.modules.drafts.models import ActiveInventory  # noqa: F401
from sign_inventory.modules.sync_queue.models import SyncQueueEntry  # noqa: F401

logger = logging.getLogger(__name__)


class MigrationAction(str, enum.Enum):
    preserve = "preserve"
    recreate = "recreate"


@dataclass(frozen=True)
class MigrationStep:
    from_version: int
    to_version: int
    action: MigrationAction
    tables: Sequence[str]


MIGRATIONS: list[MigrationStep] = [
    MigrationStep(0, 1, MigrationAction.preserve, ("catalog_snapshots", "sync_queue")),
    MigrationStep(1, 2, MigrationAction.preserve, ("active_inventory",)),
    MigrationStep(2, 3, MigrationAction.preserve, ("cached_sites", "cached_areas")),
    # Snapshots moved from a per-site key to the (site, area) composite key
    MigrationStep(3, 4, MigrationAction.recreate, ("catalog_snapshots",)),
]

SCHEMA_VERSION = MIGRATIONS[-1].to_version


def get_schema_version(connection: Connection) -> int:
    return connection.execute(text("PRAGMA user_version")).scalar() or 0


def _set_schema_version(connection: Connection, version: int) -> None:
    # PRAGMA does not accept bound parameters
    connection.execute(text(f"PRAGMA user_version = {int(version)}"))


def _apply_step(connection: Connection, ops: Operations, step: MigrationStep) -> None:
    tables = [Base.metadata.tables[name] for name in step.tables]

    if step.action is MigrationAction.recreate:
        existing = set(inspect(connection).get_table_names())
        for table in tables:
            if table.name in existing:
                ops.drop_table(table.name)

    Base.metadata.create_all(connection, tables=tables, checkfirst=True)
    _set_schema_version(connection, step.to_version)


def run_migrations(connection: Connection) -> int:
    """
    Bring the store up to SCHEMA_VERSION.

    Args:
        connection: Sync connection (called through AsyncConnection.run_sync)

    Returns:
        int: The version the store was at before migrating

    Raises:
        SchemaVersionConflict: If the store is newer than this code
    """
    current = get_schema_version(connection)
    if current > SCHEMA_VERSION:
        raise SchemaVersionConflict(current, SCHEMA_VERSION)

    ops = Operations(MigrationContext.configure(connection))
    for step in MIGRATIONS:
        if step.from_version < current:
            continue
        logger.info(
            "Migrating local store %s -> %s (%s %s)",
            step.from_version,
            step.to_version,
            step.action.value,
            ", ".join(step.tables),
        )
        _apply_step(connection, ops, step)

    return current


def destroy_schema(connection: Connection) -> None:
    """Drop every table in the store and reset the version to 0."""
    ops = Operations(MigrationContext.configure(connection))
    for name in inspect(connection).get_table_names():
        ops.drop_table(name)
    _set_schema_version(connection, 0)
