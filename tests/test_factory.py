"""Unit tests for tokenizer assembly against synthetic rank tables."""

import pytest
import tiktoken

import bpekit
from bpekit.errors import (
    AllocationCollisionError,
    EngineConstructionError,
    PatternError,
    ProfileError,
    ResourceNotFoundError,
    ResourceParseError,
)
from bpekit.factory import EncodingParams, build_params, construct
from bpekit.pattern import SplitPattern
from bpekit.profiles import ModelProfile
from bpekit.special import (
    ENDOFPROMPT,
    ENDOFTEXT,
    FIM_MIDDLE,
    FIM_PREFIX,
    FIM_SUFFIX,
    LANGUAGES,
    STARTOFTRANSCRIPT,
    FixedScheme,
    language_token,
    whisper_token_names,
)
from bpekit.vocab import parse_ranks

from conftest import BASE_SIZE, base_tokens, write_table

N_WHISPER_SPECIALS = len(whisper_token_names())


# Fixed identifiers
# ---------------------------------------------------------------------------


def test_r50k_base_special_tokens(assets_dir):
    params = build_params("r50k_base")
    assert dict(params.special_toks) == {ENDOFTEXT: 50256}
    assert params.pattern == SplitPattern.R50K.value


def test_p50k_edit_special_tokens(assets_dir):
    params = build_params("p50k_edit")
    assert dict(params.special_toks) == {
        ENDOFTEXT: 50256,
        FIM_PREFIX: 50281,
        FIM_MIDDLE: 50282,
        FIM_SUFFIX: 50283,
    }


def test_cl100k_base_special_tokens(assets_dir):
    params = build_params("cl100k_base")
    assert dict(params.special_toks) == {
        ENDOFTEXT: 100257,
        FIM_PREFIX: 100258,
        FIM_MIDDLE: 100259,
        FIM_SUFFIX: 100260,
        ENDOFPROMPT: 100276,
    }
    assert params.pattern == SplitPattern.CL100K.value


# Sequential identifiers
# ---------------------------------------------------------------------------


def test_whisper_gpt2_starts_at_vocab_size(assets_dir):
    params = build_params("whisper_gpt2")
    assert params.special_toks[ENDOFTEXT] == len(params.vocab) == BASE_SIZE
    assert params.special_toks[STARTOFTRANSCRIPT] == BASE_SIZE + 1
    assert params.special_toks["<|30.00|>"] == BASE_SIZE + N_WHISPER_SPECIALS - 1
    assert params.n_vocab == BASE_SIZE + N_WHISPER_SPECIALS


def test_whisper_multilingual_counts_empty_token(assets_dir):
    """The '=' entry is part of the vocabulary and shifts every identifier by one."""
    params = build_params("whisper_multilingual")
    assert params.vocab.rank_of(b"") == BASE_SIZE
    assert params.special_toks[ENDOFTEXT] == BASE_SIZE + 1
    langs = [params.special_toks[language_token(code)] for code in LANGUAGES]
    assert langs == list(range(BASE_SIZE + 3, BASE_SIZE + 3 + len(LANGUAGES)))


# Engine construction
# ---------------------------------------------------------------------------


def test_r50k_base_encodes_and_decodes(assets_dir):
    enc = bpekit.r50k_base()
    assert isinstance(enc, tiktoken.Encoding)
    assert enc.encode("hello world") == [BASE_SIZE - 6, BASE_SIZE - 1]
    assert enc.decode(enc.encode("hello world!")) == "hello world!"
    assert enc.encode("<|endoftext|>", allowed_special="all") == [50256]


def test_whisper_multilingual_constructs(assets_dir):
    enc = bpekit.whisper_multilingual()
    assert enc.n_vocab == BASE_SIZE + 1 + N_WHISPER_SPECIALS
    assert enc.encode("<|startoftranscript|>", allowed_special="all") == [BASE_SIZE + 2]


@pytest.mark.parametrize("name", bpekit.list_encodings())
def test_every_family_constructs(assets_dir, name):
    enc = bpekit.get_encoding(name)
    assert enc.decode(enc.encode("hello world")) == "hello world"


def test_construct_wraps_engine_errors():
    params = EncodingParams(
        name="broken",
        vocab=parse_ranks("IQ== 0\n"),
        special_toks={},
        pattern="(",
    )
    with pytest.raises(EngineConstructionError) as exc_info:
        construct(params)
    assert exc_info.value.encoding == "broken"
    assert exc_info.value.__cause__ is not None


# Determinism
# ---------------------------------------------------------------------------


def test_build_params_is_idempotent(assets_dir):
    first = build_params("whisper_multilingual")
    second = build_params("whisper_multilingual")
    assert first == second
    assert first.vocab is not second.vocab


def test_factory_returns_independent_equal_tokenizers(assets_dir):
    first = bpekit.cl100k_base()
    second = bpekit.cl100k_base()
    assert first is not second
    assert first._mergeable_ranks == second._mergeable_ranks
    assert first._special_tokens == second._special_tokens


# Failures
# ---------------------------------------------------------------------------


def test_unknown_encoding_raises():
    with pytest.raises(ProfileError):
        bpekit.get_encoding("o200k_base")


def test_missing_asset_raises(tmp_path):
    bpekit.set_assets_dir(tmp_path)
    with pytest.raises(ResourceNotFoundError):
        bpekit.p50k_base()


def test_corrupt_asset_prevents_construction(assets_dir):
    """A line missing its rank fails construction instead of being skipped."""
    with (assets_dir / "r50k_base.tiktoken").open("a", encoding="utf-8") as f:
        f.write("eHl6\n")
    with pytest.raises(ResourceParseError):
        bpekit.r50k_base()
    # the whisper family shares the table
    with pytest.raises(ResourceParseError):
        bpekit.whisper_gpt2()


def test_colliding_fixed_identifier_raises(assets_dir):
    profile = ModelProfile(
        name="colliding",
        asset="r50k_base.tiktoken",
        pattern=SplitPattern.R50K.value,
        scheme=FixedScheme([(ENDOFTEXT, 3)]),
        n_vocab=BASE_SIZE + 1,
    )
    with pytest.raises(AllocationCollisionError):
        build_params(profile)


def test_invalid_pattern_raises(assets_dir):
    profile = ModelProfile(
        name="bad-pattern",
        asset="r50k_base.tiktoken",
        pattern="(",
        scheme=FixedScheme([(ENDOFTEXT, 50256)]),
        n_vocab=BASE_SIZE + 1,
    )
    with pytest.raises(PatternError):
        build_params(profile)


# Strict rank validation
# ---------------------------------------------------------------------------


def test_strict_mode_rejects_unclaimed_gap(assets_dir):
    tokens = base_tokens()
    ranks = list(range(len(tokens)))
    ranks[-1] += 1  # leaves BASE_SIZE - 1 unused
    write_table(assets_dir / "r50k_base.tiktoken", tokens, ranks)

    build_params("r50k_base")
    bpekit.enable_strict_ranks()
    with pytest.raises(ResourceParseError, match="missing"):
        build_params("r50k_base")


def test_strict_mode_accepts_gap_claimed_by_special(assets_dir):
    """p50k_base leaves the end-of-text rank out of its table."""
    tokens = [bytes([b]) for b in range(256)]
    ranks = list(range(256))
    ranks[-1] = 256
    write_table(assets_dir / "r50k_base.tiktoken", tokens, ranks)
    profile = ModelProfile(
        name="gapped",
        asset="r50k_base.tiktoken",
        pattern=SplitPattern.R50K.value,
        scheme=FixedScheme([(ENDOFTEXT, 255)]),
        n_vocab=257,
    )

    bpekit.enable_strict_ranks()
    params = build_params(profile)
    assert params.n_vocab == profile.n_vocab


def test_strict_mode_rejects_out_of_order_ranks(assets_dir, monkeypatch):
    tokens = base_tokens()
    ranks = list(range(len(tokens)))
    ranks[10], ranks[11] = ranks[11], ranks[10]
    write_table(assets_dir / "r50k_base.tiktoken", tokens, ranks)

    monkeypatch.setenv("BPEKIT_STRICT_RANKS", "1")
    with pytest.raises(ResourceParseError, match="out of order"):
        build_params("r50k_base")


# Published totals
# ---------------------------------------------------------------------------


def test_table_one_line_short_fails_construction(assets_dir):
    """A table cut at a line break would shift every whisper identifier."""
    write_table(assets_dir / "r50k_base.tiktoken", base_tokens()[:-1])
    with pytest.raises(ResourceParseError, match="expected"):
        build_params("whisper_gpt2")
    with pytest.raises(ResourceParseError, match="expected"):
        bpekit.r50k_base()


def test_table_one_line_long_fails_construction(assets_dir):
    write_table(assets_dir / "cl100k_base.tiktoken", base_tokens() + [b"xyz"])
    with pytest.raises(ResourceParseError):
        bpekit.cl100k_base()


def test_dense_families_pass_total_to_engine(assets_dir):
    params = build_params("whisper_gpt2")
    assert params.explicit_n_vocab == BASE_SIZE + N_WHISPER_SPECIALS
    assert bpekit.whisper_gpt2().n_vocab == params.explicit_n_vocab
    assert build_params("cl100k_base").explicit_n_vocab is None


def test_engine_rejects_wrong_explicit_total():
    params = EncodingParams(
        name="mismatched",
        vocab=parse_ranks("IQ== 0\nIg== 1\n"),
        special_toks={ENDOFTEXT: 2},
        pattern=SplitPattern.R50K.value,
        explicit_n_vocab=4,
    )
    with pytest.raises(EngineConstructionError):
        construct(params)


# Aliases
# ---------------------------------------------------------------------------


def test_alias_keeps_requested_name(assets_dir):
    assert bpekit.get_encoding("gpt2").name == "gpt2"
    assert bpekit.get_encoding("r50k_base").name == "r50k_base"
    assert build_params("gpt2").special_toks == build_params("r50k_base").special_toks
