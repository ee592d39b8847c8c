import os
import stat
import tempfile
from pathlib import Path
from typing import Dict, Sequence, Union
from feedstate.gateway import GatewayFactory
from feedstate.reader import read_json
from feedstate.schema import TableSchema
from feedstate.writer import write
from feedstate.logging import logger


def _backup_mode(path: Path) -> int:
    """Mode a plain open(path, "w") would give: keep an existing file's, else 0666 less umask."""
    if path.exists():
        return stat.S_IMODE(path.stat().st_mode)
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def write_json_file(
    path: Union[str, Path],
    factory: GatewayFactory,
    tables: Sequence[TableSchema],
) -> Dict[str, int]:
    """
    Export ``tables`` to a JSON file.

    The document is written to a temporary file next to ``path`` and moved
    into place once complete, so a failed export never clobbers the previous
    backup.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            counts = write(tables, factory, f)
        os.chmod(tmp_name, _backup_mode(path))
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    logger.info(f"Wrote backup to {path}")
    return counts


def read_json_file(
    path: Union[str, Path],
    factory: GatewayFactory,
    tables: Sequence[TableSchema],
    first_row_only: bool = False,
) -> Dict[str, int]:
    """Replace the contents of ``tables`` with the backup stored at ``path``."""
    logger.info(f"Reading backup from {path}")
    with open(path, "r", encoding="utf-8") as f:
        return read_json(f, tables, factory, first_row_only=first_row_only)
