"""
Migration script discovery.

Layout::

    migrations/
        Up/0001__create_products.sql
        Up/0002__add_sku.sql
        Down/0002__add_sku.sql

Every ``Up`` script is a migration; a ``Down`` script with the same
version makes it reversible.
"""
from pathlib import Path
from typing import Dict, List, Tuple, Union
import logging
import re

from persistkit.data.exceptions import MigrationConfigurationError

from .models import Migration


logger = logging.getLogger(__name__)

UP_DIRECTORY = "Up"
DOWN_DIRECTORY = "Down"

_SCRIPT_NAME = re.compile(r"^(?P<version>\d+)__(?P<name>\w[\w\-]*)\.sql$")


def load_migrations(directory: Union[str, Path]) -> List[Migration]:
    """
    Read migrations from ``directory``.

    Args:
        directory: Folder holding ``Up`` and optionally ``Down``

    Returns:
        Migrations in ascending version order

    Raises:
        MigrationConfigurationError: On a missing ``Up`` folder, a badly
            named script, a duplicate version, or a down script without
            a matching up script
    """
    root = Path(directory)
    up_directory = root / UP_DIRECTORY
    down_directory = root / DOWN_DIRECTORY

    if not up_directory.is_dir():
        raise MigrationConfigurationError(f"Migration folder not found: {up_directory}")

    up_scripts = _read_scripts(up_directory)
    down_scripts = _read_scripts(down_directory) if down_directory.is_dir() else {}

    orphans = sorted(set(down_scripts) - set(up_scripts))
    if orphans:
        raise MigrationConfigurationError(
            f"Down scripts without an up script for versions: {orphans}"
        )

    migrations = []
    for version in sorted(up_scripts):
        name, up_sql = up_scripts[version]
        down_sql = None
        if version in down_scripts:
            down_name, down_sql = down_scripts[version]
            if down_name != name:
                raise MigrationConfigurationError(
                    f"Down script '{version}__{down_name}' does not match up script "
                    f"'{version}__{name}'"
                )
        migrations.append(Migration(version=version, name=name, up_sql=up_sql, down_sql=down_sql))

    logger.info(f"Loaded {len(migrations)} migrations from {root}")
    return migrations


def _read_scripts(directory: Path) -> Dict[int, Tuple[str, str]]:
    scripts: Dict[int, Tuple[str, str]] = {}
    for path in sorted(directory.glob("*.sql")):
        match = _SCRIPT_NAME.match(path.name)
        if match is None:
            raise MigrationConfigurationError(
                f"Migration script '{path.name}' is not named <version>__<name>.sql"
            )

        version = int(match.group("version"))
        if version < 1:
            raise MigrationConfigurationError(f"Migration script '{path.name}' has version 0")
        if version in scripts:
            raise MigrationConfigurationError(
                f"Duplicate migration version {version} in {directory}"
            )

        scripts[version] = (match.group("name"), path.read_text(encoding="utf-8"))
    return scripts


def split_sql(sql: str) -> List[str]:
    """Split a script into statements on lines ending with ``;``.

    Whole-line ``--`` comments and blank lines are dropped.
    """
    statements = []
    current: List[str] = []
    for line in sql.splitlines():
        stripped = line.strip()
        if stripped.startswith("--") or not stripped:
            continue
        current.append(line)
        if stripped.endswith(";"):
            statement = "\n".join(current).strip().rstrip(";").strip()
            if statement:
                statements.append(statement)
            current = []

    # Trailing statement without a terminator
    if current:
        statement = "\n".join(current).strip()
        if statement:
            statements.append(statement)
    return statements
