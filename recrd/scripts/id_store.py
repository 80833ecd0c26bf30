"""Plain-text id hand-off between independent operator runs."""

from __future__ import annotations

from pathlib import Path

from error_map import PreconditionError, ScratchIdMissing

SCRATCH_NAMES = ("profile", "buyer_profile", "master", "metadata")


def scratch_path(scratch_dir: Path, name: str) -> Path:
    if name not in SCRATCH_NAMES:
        raise PreconditionError(f"unknown scratch name {name!r}; expected one of {list(SCRATCH_NAMES)}")
    return Path(scratch_dir) / f"{name}_id.txt"


def write_ids(scratch_dir: Path, name: str, ids: str | list[str]) -> Path:
    values = [ids] if isinstance(ids, str) else list(ids)
    if not values or not all(isinstance(v, str) and v for v in values):
        raise PreconditionError(f"refusing to write empty id list for {name!r}")
    path = scratch_path(scratch_dir, name)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(values) + "\n", encoding="utf-8")
    return path


def read_ids(scratch_dir: Path, name: str) -> list[str]:
    path = scratch_path(scratch_dir, name)
    if not path.exists():
        raise ScratchIdMissing(
            f"no {name} id recorded in {path}",
            details={"hint": f"run the operation that creates a {name} first, or pass the id explicitly."},
        )
    ids = [line.strip() for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]
    if not ids:
        raise ScratchIdMissing(f"{path} is empty")
    return ids


def read_id(scratch_dir: Path, name: str) -> str:
    """Most recently written id for `name`."""
    return read_ids(scratch_dir, name)[-1]
