"""Checks against the published rank tables; skipped when the assets are not installed."""

import pytest

import bpekit
from bpekit.factory import build_params
from bpekit.profiles import PROFILES
from bpekit.settings import asset_available
from bpekit.special import ENDOFTEXT, STARTOFTRANSCRIPT


def _requires(*assets: str):
    missing = [a for a in assets if not asset_available(a)]
    return pytest.mark.skipif(bool(missing), reason=f"rank tables not installed: {missing}")


@pytest.fixture(autouse=True)
def _clean_settings():
    """Use whatever asset location the environment provides."""


@pytest.mark.parametrize("name", sorted(set(p.name for p in PROFILES.values())))
def test_published_token_counts(name):
    profile = PROFILES[name]
    if not asset_available(profile.asset):
        pytest.skip(f"{profile.asset} not installed")
    params = build_params(profile)
    assert len(params.vocab) + len(params.special_toks) == profile.n_vocab


@_requires("r50k_base.tiktoken")
def test_whisper_gpt2_offsets():
    params = build_params("whisper_gpt2")
    assert len(params.vocab) == 50256
    assert params.special_toks[ENDOFTEXT] == 50256
    assert params.special_toks[STARTOFTRANSCRIPT] == 50257


@_requires("whisper_multilingual.tiktoken")
def test_whisper_multilingual_empty_token():
    params = build_params("whisper_multilingual")
    assert b"" in params.vocab
    assert params.special_toks[ENDOFTEXT] == len(params.vocab) == 50257


@_requires("p50k_base.tiktoken")
def test_p50k_base_leaves_endoftext_rank_free():
    params = build_params("p50k_base")
    assert params.vocab.missing_ranks() == [50256]


@_requires("cl100k_base.tiktoken")
def test_cl100k_base_round_trip():
    enc = bpekit.cl100k_base()
    text = "hello world, 12345!\n"
    assert enc.decode(enc.encode(text)) == text
    assert enc.encode("<|endofprompt|>", allowed_special="all") == [100276]
