"""Conflict policy applied to the target table before it is created."""

import logging

from ..models.config import MigrationMode
from .connections import TargetConnection
from .materializer import quote_identifier


logger = logging.getLogger(__name__)


async def handle_existing_data(target: TargetConnection, table_name: str, mode: MigrationMode) -> None:
    """
    Prepare the target table according to the migration mode.

    INSERT and UPSERT leave the table untouched, OVERWRITE drops it and
    TRUNCATE empties it (failing if it does not exist).
    """
    if mode == MigrationMode.OVERWRITE:
        logger.info(f"Dropping target table {table_name} (overwrite mode)")
        await target.execute(f"DROP TABLE IF EXISTS {quote_identifier(table_name)}")
    elif mode == MigrationMode.TRUNCATE:
        logger.info(f"Truncating target table {table_name}")
        await target.execute(f"TRUNCATE TABLE {quote_identifier(table_name)}")
