"""Shared fixtures: small synthetic rank tables standing in for the published assets."""

import base64
from dataclasses import replace
from types import MappingProxyType

import pytest

import bpekit.profiles as profiles
import bpekit.settings as settings
from bpekit.special import SequentialScheme

# single bytes first, then a handful of merges over "hello world"
MERGES = [b"he", b"ll", b"llo", b"hello", b" w", b"or", b" wor", b"ld", b" world"]
BASE_SIZE = 256 + len(MERGES)


def base_tokens() -> list[bytes]:
    """Return synthetic tokens in rank order."""
    return [bytes([b]) for b in range(256)] + MERGES


def write_table(path, tokens: list[bytes], ranks: list[int] | None = None) -> None:
    """Write ``tokens`` as a rank table, ranks defaulting to line position."""
    if ranks is None:
        ranks = list(range(len(tokens)))
    lines = []
    for tok, rank in zip(tokens, ranks, strict=True):
        field = "=" if tok == b"" else base64.b64encode(tok).decode("ascii")
        lines.append(f"{field} {rank}\n")
    path.write_text("".join(lines), encoding="utf-8")


def synthetic_profile(profile: profiles.ModelProfile) -> profiles.ModelProfile:
    """Return ``profile`` resized for the synthetic table it will be built from."""
    n_ranks = BASE_SIZE + (1 if profile.allow_empty_sentinel else 0)
    return replace(
        profile,
        n_vocab=n_ranks + len(profile.scheme),
        dense=profile.dense and isinstance(profile.scheme, SequentialScheme),
    )


@pytest.fixture(autouse=True)
def _clean_settings(monkeypatch):
    """Reset module-level configuration around every test."""
    monkeypatch.delenv(settings.ASSETS_DIR_ENV, raising=False)
    monkeypatch.delenv(settings.STRICT_RANKS_ENV, raising=False)
    monkeypatch.setattr(settings, "_assets_dir", None)
    monkeypatch.setattr(settings, "_strict_ranks", False)


@pytest.fixture
def assets_dir(tmp_path, monkeypatch):
    """
    Point bpekit at a directory holding synthetic tables for every family.

    Profiles are swapped for copies whose published totals match the
    synthetic table sizes. Only the sequential families stay dense.
    """
    write_table(tmp_path / "r50k_base.tiktoken", base_tokens())
    write_table(tmp_path / "p50k_base.tiktoken", base_tokens())
    write_table(tmp_path / "cl100k_base.tiktoken", base_tokens())
    # multilingual table carries the empty token as its last entry
    write_table(tmp_path / "whisper_multilingual.tiktoken", base_tokens() + [b""])
    settings.set_assets_dir(tmp_path)
    monkeypatch.setattr(profiles, "PROFILES", MappingProxyType(
        {name: synthetic_profile(p) for name, p in profiles.PROFILES.items()}
    ))
    return tmp_path
