"""Runtime configuration for asset lookup and rank table validation."""

import logging
import os
from importlib.resources import files
from importlib.resources.abc import Traversable
from pathlib import Path

from .errors import ResourceNotFoundError

log = logging.getLogger(__name__)

ASSETS_DIR_ENV = "BPEKIT_ASSETS_DIR"
STRICT_RANKS_ENV = "BPEKIT_STRICT_RANKS"

_assets_dir: Path | None = None
_strict_ranks: bool = False


def set_assets_dir(path: str | os.PathLike[str] | None) -> None:
    """Search ``path`` for rank tables before the bundled package assets; ``None`` resets."""
    global _assets_dir
    _assets_dir = Path(path) if path is not None else None


def get_assets_dir() -> Path | None:
    """Return the configured asset directory (respects env var override)."""
    env_dir = os.environ.get(ASSETS_DIR_ENV, "").strip()
    if env_dir:
        return Path(env_dir)
    return _assets_dir


def enable_strict_ranks() -> None:
    """Reject rank tables whose ranks are out of order or leave unclaimed gaps."""
    global _strict_ranks
    _strict_ranks = True


def disable_strict_ranks() -> None:
    """Trust rank tables as-is apart from duplicate detection."""
    global _strict_ranks
    _strict_ranks = False


def strict_ranks_enabled() -> bool:
    """Check if strict rank validation is on (respects env var override)."""
    if os.environ.get(STRICT_RANKS_ENV, "").strip() == "1":
        return True
    return _strict_ranks


def resolve_asset(name: str) -> Path | Traversable:
    """
    Locate a rank table resource by file name.

    The configured asset directory is searched first, then the ``assets``
    directory shipped inside the package.

    :param name: Resource file name, e.g. ``"cl100k_base.tiktoken"``.
    :return: A readable path or package resource.
    :raises ResourceNotFoundError: If neither location holds the resource.
    """
    assets_dir = get_assets_dir()
    if assets_dir is not None:
        candidate = assets_dir / name
        if candidate.is_file():
            log.debug(f"resolved {name} in {assets_dir}")
            return candidate

    bundled = files("bpekit").joinpath("assets", name)
    if bundled.is_file():
        log.debug(f"resolved {name} in bundled assets")
        return bundled

    raise ResourceNotFoundError(
        f"rank table not found, set {ASSETS_DIR_ENV} or call set_assets_dir()",
        source=name,
    )


def asset_available(name: str) -> bool:
    """Return whether a rank table resource can be located."""
    try:
        resolve_asset(name)
    except ResourceNotFoundError:
        return False
    return True
