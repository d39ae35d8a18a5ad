from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Optional

from ..errors import ArtifactWriteError


def write_atomic(path: Path, content: str, *, mode: Optional[int] = None) -> Path:
    """Write via a temp file in the same directory and rename it into place."""

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            if mode is not None:
                os.chmod(tmp, mode)
            os.replace(tmp, path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise
    except OSError as e:
        raise ArtifactWriteError(str(path), str(e)) from e
    return path
