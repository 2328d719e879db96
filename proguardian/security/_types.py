from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class ValidatedPath:
	"""
	Absolute, lexically normalized path proven to sit inside ``base``.
	Do not construct directly outside the path guard.
	"""
	_p: Path
	base: Path

	def as_path(self) -> Path:
		"""Return the underlying Path (use sparingly; prefer SecureFileOps APIs)."""
		return self._p

	@property
	def name(self) -> str:
		return self._p.name

	@property
	def parent(self) -> Path:
		return self._p.parent

	def __fspath__(self) -> str:
		# Allows os.fspath(vp) and low-level APIs to consume it safely.
		return str(self._p)

	def __str__(self) -> str:  # pragma: no cover - trivial
		return str(self._p)

	def __repr__(self) -> str:  # pragma: no cover - trivial
		return f"ValidatedPath({self._p!s})"
