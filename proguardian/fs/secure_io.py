"""Permission-checked, size-bounded file operations with atomic writes.

Every public method validates its path argument against the instance's base
directory before touching the filesystem. Permissions are checked explicitly
so failures surface as ``PermissionDenied`` rather than a raw ``OSError``.

Writes go to a sibling ``<name>.tmp.<hex>`` file which is then renamed over
the target, so a reader sees either the old or the new complete content.
"""

from __future__ import annotations

import fnmatch
import json
import logging
import os
import secrets
import stat as _stat
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Union

from ..config.defaults import FILES
from ..errors import FileOperationError, PermissionDenied, SecurityError, ValidationError
from ..logging.structured import StructuredLogger
from ..security._types import ValidatedPath
from ..security.path_guard import PathInput, validate_safe_path

logger = logging.getLogger(__name__)

TMP_MARKER = ".tmp."


@dataclass(frozen=True)
class DirEntryInfo:
    """One directory entry with the metadata gathered during the scan."""

    name: str
    path: Path
    is_file: bool
    is_dir: bool
    is_symlink: bool
    size: int
    mode: int
    mtime: float


def _tmp_sibling(target: Path) -> Path:
    return target.with_name(f"{target.name}{TMP_MARKER}{secrets.token_hex(6)}")


def _best_effort_unlink(path: Path) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.debug("could not remove temp file: %s", exc.__class__.__name__)


class SecureFileOps:
    """File operations confined to ``base_dir``.

    Args:
        base_dir: Directory no operation may escape (default: current directory)
        logger: Optional StructuredLogger for debug traces
    """

    def __init__(self, base_dir: Optional[PathInput] = None, *, logger: Optional[StructuredLogger] = None) -> None:
        self.base_dir = Path(os.path.abspath(os.fspath(base_dir) if base_dir is not None else os.getcwd()))
        self.logger = logger

    def validate(self, path: Union[PathInput, ValidatedPath]) -> ValidatedPath:
        return validate_safe_path(path, self.base_dir)

    def _debug(self, message: str, **context: Any) -> None:
        if self.logger is not None:
            self.logger.debug(message, **context)

    # ---------- Queries ----------
    @staticmethod
    def check_permissions(path: PathInput, mode: int) -> bool:
        """Return True if the current process has ``mode`` access to ``path``."""
        return os.access(os.fspath(path), mode)

    def exists(self, path: Union[PathInput, ValidatedPath]) -> bool:
        """True if the path validates and exists; validation failures count as absent."""
        try:
            safe = self.validate(path)
        except (ValidationError, SecurityError):
            return False
        return os.path.exists(safe)

    def stat(self, path: Union[PathInput, ValidatedPath]) -> os.stat_result:
        safe = self.validate(path)
        try:
            return os.stat(safe)
        except FileNotFoundError:
            raise ValidationError("path", safe.name, "File does not exist")
        except PermissionError:
            raise PermissionDenied("stat", safe)

    def listdir(
        self,
        path: Union[PathInput, ValidatedPath] = ".",
        *,
        pattern: Optional[str] = None,
        with_metadata: bool = False,
    ) -> Union[List[str], List[DirEntryInfo]]:
        """List a directory, optionally filtered by an fnmatch ``pattern``.

        With ``with_metadata=True`` each entry carries its stat data from the
        same scan, avoiding a second stat per entry.
        """
        safe = self.validate(path)
        if not os.path.exists(safe):
            raise ValidationError("path", safe.name, "Directory does not exist")
        if not self.check_permissions(safe, os.R_OK):
            raise PermissionDenied("read directory", safe)
        if not os.path.isdir(safe):
            raise ValidationError("path", safe.name, "Not a directory")

        names: List[str] = []
        infos: List[DirEntryInfo] = []
        try:
            with os.scandir(safe) as it:
                for entry in it:
                    if pattern is not None and not fnmatch.fnmatch(entry.name, pattern):
                        continue
                    if not with_metadata:
                        names.append(entry.name)
                        continue
                    st = entry.stat(follow_symlinks=False)
                    infos.append(
                        DirEntryInfo(
                            name=entry.name,
                            path=Path(entry.path),
                            is_file=_stat.S_ISREG(st.st_mode),
                            is_dir=_stat.S_ISDIR(st.st_mode),
                            is_symlink=_stat.S_ISLNK(st.st_mode),
                            size=st.st_size,
                            mode=_stat.S_IMODE(st.st_mode),
                            mtime=st.st_mtime,
                        )
                    )
        except PermissionError:
            raise PermissionDenied("read directory", safe)
        except OSError as exc:
            raise FileOperationError("list", safe, exc.strerror) from exc

        if with_metadata:
            return sorted(infos, key=lambda info: info.name)
        return sorted(names)

    # ---------- Reads ----------
    def read_bytes(self, path: Union[PathInput, ValidatedPath], *, max_size: Optional[int] = None) -> bytes:
        safe = self.validate(path)
        limit = FILES.max_read_bytes if max_size is None else max_size

        if not os.path.exists(safe):
            raise FileOperationError("read", safe, "File does not exist")
        if not self.check_permissions(safe, os.R_OK):
            raise PermissionDenied("read", safe)

        size = os.stat(safe).st_size
        if size > limit:
            raise SecurityError(f"File too large: {size} bytes exceeds maximum of {limit} bytes")

        try:
            with open(safe, "rb") as f:
                # Read one byte past the limit in case the file grew after stat
                data = f.read(limit + 1)
        except PermissionError:
            raise PermissionDenied("read", safe)
        except OSError as exc:
            raise FileOperationError("read", safe, exc.strerror) from exc
        if len(data) > limit:
            raise SecurityError(f"File too large: exceeds maximum of {limit} bytes")
        return data

    def read_text(
        self,
        path: Union[PathInput, ValidatedPath],
        *,
        max_size: Optional[int] = None,
        encoding: str = "utf-8",
    ) -> str:
        data = self.read_bytes(path, max_size=max_size)
        try:
            return data.decode(encoding)
        except UnicodeDecodeError as exc:
            raise ValidationError("encoding", encoding, "File is not valid text") from exc

    def read_json(self, path: Union[PathInput, ValidatedPath], *, max_size: Optional[int] = None) -> Any:
        content = self.read_text(path, max_size=max_size)
        try:
            return json.loads(content)
        except json.JSONDecodeError:
            raise ValidationError("json", "content", "Invalid JSON format")

    # ---------- Writes ----------
    def _prepare_target(self, safe: ValidatedPath) -> Path:
        target = safe.as_path()
        parent = target.parent
        if not parent.exists():
            try:
                parent.mkdir(parents=True, exist_ok=True, mode=FILES.dir_mode)
            except PermissionError:
                raise PermissionDenied("create directory", parent)
            except OSError as exc:
                raise FileOperationError("create directory", parent, exc.strerror) from exc
        if not self.check_permissions(parent, os.W_OK):
            raise PermissionDenied("write to directory", parent)
        if target.exists() and not self.check_permissions(target, os.W_OK):
            raise PermissionDenied("write", target)
        return target

    def write_bytes(self, path: Union[PathInput, ValidatedPath], content: bytes, *, mode: Optional[int] = None) -> ValidatedPath:
        """Atomically replace ``path`` with ``content``."""
        safe = self.validate(path)
        target = self._prepare_target(safe)
        file_mode = FILES.file_mode if mode is None else mode

        tmp = _tmp_sibling(target)
        try:
            fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_EXCL | getattr(os, "O_CLOEXEC", 0), file_mode)
        except PermissionError:
            raise PermissionDenied("write", target)
        except OSError as exc:
            raise FileOperationError("write", target, exc.strerror) from exc

        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp, file_mode)
            os.replace(tmp, target)
        except BaseException as exc:
            _best_effort_unlink(tmp)
            if isinstance(exc, PermissionError):
                raise PermissionDenied("write", target) from exc
            if isinstance(exc, OSError):
                raise FileOperationError("write", target, exc.strerror) from exc
            raise
        self._debug("wrote file", file=target.name, size=len(content))
        return safe

    def write_text(
        self,
        path: Union[PathInput, ValidatedPath],
        content: str,
        *,
        mode: Optional[int] = None,
        encoding: str = "utf-8",
    ) -> ValidatedPath:
        return self.write_bytes(path, content.encode(encoding), mode=mode)

    def write_json(
        self,
        path: Union[PathInput, ValidatedPath],
        data: Any,
        *,
        indent: Optional[int] = 2,
        mode: Optional[int] = None,
    ) -> ValidatedPath:
        """Serialize ``data`` completely, then write it atomically.

        Cyclic or non-serializable input fails before any bytes are written.
        """
        try:
            content = json.dumps(data, indent=indent, ensure_ascii=False)
        except (TypeError, ValueError, RecursionError):
            raise ValidationError("data", "object", "Cannot serialize to JSON")
        return self.write_text(path, content + "\n", mode=mode)

    def copy(
        self,
        source: Union[PathInput, ValidatedPath],
        destination: Union[PathInput, ValidatedPath],
        *,
        overwrite: bool = False,
        preserve_mode: bool = False,
        source_base: Optional[PathInput] = None,
        max_size: Optional[int] = None,
    ) -> ValidatedPath:
        """Copy ``source`` to ``destination`` through the atomic write path.

        ``source_base`` validates the source against a different trusted root
        (e.g. the bundled templates directory) instead of ``base_dir``.
        """
        if source_base is not None:
            safe_source = validate_safe_path(source, source_base)
        else:
            safe_source = self.validate(source)
        safe_dest = self.validate(destination)

        if not os.path.isfile(safe_source):
            raise ValidationError("source", safe_source.name, "File does not exist")
        if not self.check_permissions(safe_source, os.R_OK):
            raise PermissionDenied("read", safe_source)
        if os.path.exists(safe_dest) and not overwrite:
            raise ValidationError("destination", safe_dest.name, "File already exists")

        limit = FILES.max_read_bytes if max_size is None else max_size
        size = os.stat(safe_source).st_size
        if size > limit:
            raise SecurityError(f"File too large: {size} bytes exceeds maximum of {limit} bytes")
        try:
            with open(safe_source, "rb") as f:
                data = f.read()
        except OSError as exc:
            raise FileOperationError("read", safe_source, exc.strerror) from exc

        file_mode = _stat.S_IMODE(os.stat(safe_source).st_mode) if preserve_mode else None
        return self.write_bytes(safe_dest, data, mode=file_mode)

    def mkdir(self, path: Union[PathInput, ValidatedPath], *, mode: Optional[int] = None) -> ValidatedPath:
        safe = self.validate(path)
        target = safe.as_path()
        parent = target.parent
        if parent.exists() and not self.check_permissions(parent, os.W_OK):
            raise PermissionDenied("create directory in", parent)
        try:
            target.mkdir(parents=True, exist_ok=True, mode=FILES.dir_mode if mode is None else mode)
        except FileExistsError:
            raise ValidationError("path", target.name, "Path exists and is not a directory")
        except PermissionError:
            raise PermissionDenied("create directory", target)
        except OSError as exc:
            raise FileOperationError("create directory", target, exc.strerror) from exc
        return safe

    def chmod(self, path: Union[PathInput, ValidatedPath], mode: int) -> None:
        safe = self.validate(path)
        try:
            os.chmod(safe, mode)
        except PermissionError:
            raise PermissionDenied("change mode of", safe)
        except OSError as exc:
            raise FileOperationError("change mode of", safe, exc.strerror) from exc


__all__ = ["DirEntryInfo", "SecureFileOps", "TMP_MARKER"]
