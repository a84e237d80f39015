"""Factory functions assembling tokenizers for each model family."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

import tiktoken

from ._decorators import measure_time
from .errors import EngineConstructionError, ResourceParseError
from .pattern import compile_pattern
from .profiles import EncodingName, ModelProfile, encoding_name_for_model, get_profile
from .settings import strict_ranks_enabled
from .special import check_collisions
from .types import SpecialTokens
from .vocab import VocabularyTable, load_vocabulary

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class EncodingParams:
    """Everything the encoding engine is constructed from."""

    name: str
    vocab: VocabularyTable
    special_toks: Mapping[str, int]
    pattern: str
    # passed to the engine, which then asserts the total and the highest id
    explicit_n_vocab: int | None = None

    @property
    def n_vocab(self) -> int:
        """Vocabulary entries plus special tokens."""
        return len(self.vocab) + len(self.special_toks)


def _check_rank_gaps(vocab: VocabularyTable, special_toks: SpecialTokens) -> None:
    """Require every gap in the rank sequence to be claimed by a special token."""
    claimed = set(special_toks.values())
    unclaimed = [rank for rank in vocab.missing_ranks() if rank not in claimed]
    if unclaimed:
        raise ResourceParseError(
            f"ranks missing from table: {unclaimed[:10]}"
            + (f" and {len(unclaimed) - 10} more" if len(unclaimed) > 10 else ""),
            source=vocab.source,
        )


def build_params(profile: ModelProfile | EncodingName | str) -> EncodingParams:
    """
    Resolve a family's vocabulary, special tokens and split pattern.

    :param profile: A profile or a registered encoding name.
    :return: The parameters that would be handed to the encoding engine.
    :raises ProfileError: If the encoding name is unknown.
    :raises ResourceParseError: If the rank table is missing or malformed, or its
                                size disagrees with the published total.
    :raises AllocationCollisionError: If a special token identifier is already taken.
    :raises PatternError: If the split pattern does not compile.
    """
    if isinstance(profile, ModelProfile):
        name = profile.name
    else:
        # aliases keep the name they were requested under
        name = profile
        profile = get_profile(name)

    vocab = load_vocabulary(
        profile.asset, allow_empty_sentinel=profile.allow_empty_sentinel
    )

    # sequential schemes start numbering at the vocabulary size
    special_toks = profile.allocate(len(vocab))
    # a table cut short would otherwise shift every sequential identifier
    n_vocab = len(vocab) + len(special_toks)
    if n_vocab != profile.n_vocab:
        raise ResourceParseError(
            f"expected {profile.n_vocab} tokens, got {len(vocab)} ranks "
            f"+ {len(special_toks)} special tokens",
            source=vocab.source,
        )
    check_collisions(vocab, special_toks)

    if strict_ranks_enabled():
        vocab.validate_order()
        _check_rank_gaps(vocab, special_toks)

    compile_pattern(profile.pattern)

    log.debug(
        f"{name}: {len(vocab)} ranks, {len(special_toks)} special tokens"
    )
    return EncodingParams(
        name=name,
        vocab=vocab,
        special_toks=MappingProxyType(special_toks),
        pattern=profile.pattern,
        explicit_n_vocab=profile.n_vocab if profile.dense else None,
    )


def construct(params: EncodingParams) -> tiktoken.Encoding:
    """
    Hand assembled parameters to the encoding engine.

    :raises EngineConstructionError: If the engine rejects the parameters;
                                     the original error is chained as ``__cause__``.
    """
    try:
        return tiktoken.Encoding(
            params.name,
            pat_str=params.pattern,
            mergeable_ranks=params.vocab.to_dict(),
            special_tokens=dict(params.special_toks),
            explicit_n_vocab=params.explicit_n_vocab,
        )
    except (ValueError, AssertionError, RuntimeError) as e:
        raise EngineConstructionError(
            f"encoding engine rejected configuration: {e}", encoding=params.name
        ) from e


@measure_time
def _create(name: str) -> tiktoken.Encoding:
    """Build a fresh tokenizer for the named family."""
    params = build_params(name)
    enc = construct(params)
    log.info(f"built {params.name} tokenizer with {params.n_vocab} tokens")
    return enc


# Per-family constructors
# ===================================================================================


def r50k_base() -> tiktoken.Encoding:
    """
    Tokenizer for GPT-3 models like ``davinci`` (also known as ``gpt2``).

    .. code-block:: python

        enc = r50k_base()
        tokens = enc.encode("hello world")
    """
    return _create("r50k_base")


def p50k_base() -> tiktoken.Encoding:
    """Tokenizer for code models, ``text-davinci-002`` and ``text-davinci-003``."""
    return _create("p50k_base")


def p50k_edit() -> tiktoken.Encoding:
    """Tokenizer for edit models like ``text-davinci-edit-001`` and ``code-davinci-edit-001``."""
    return _create("p50k_edit")


def cl100k_base() -> tiktoken.Encoding:
    """Tokenizer for ChatGPT models and ``text-embedding-ada-002``."""
    return _create("cl100k_base")


def whisper_gpt2() -> tiktoken.Encoding:
    """Tokenizer for English-only ``whisper`` speech-to-text checkpoints."""
    return _create("whisper_gpt2")


def whisper_multilingual() -> tiktoken.Encoding:
    """Tokenizer for multilingual ``whisper`` speech-to-text checkpoints."""
    return _create("whisper_multilingual")


# ===================================================================================


def get_encoding(name: EncodingName | str) -> tiktoken.Encoding:
    """
    Create a tokenizer by encoding name.

    Every call returns a new, independent tokenizer. Aliases such as ``gpt2``
    keep the requested name.

    :param name: Registered encoding name, see :func:`bpekit.list_encodings`.
    :raises ProfileError: If ``name`` is unknown.

    .. code-block:: python

        enc = get_encoding("cl100k_base")
    """
    # resolve first so unknown names fail before any parsing
    get_profile(name)
    return _create(name)


def encoding_for_model(model: str) -> tiktoken.Encoding:
    """
    Create the tokenizer used by a model.

    :param model: Model identifier, e.g. ``"gpt-4"`` or ``"text-davinci-003"``.
    :raises ProfileError: If the model cannot be mapped to an encoding.

    .. code-block:: python

        enc = encoding_for_model("gpt-3.5-turbo-0613")
    """
    return get_encoding(encoding_name_for_model(model))


__all__ = [
    "EncodingParams",
    "build_params",
    "construct",
    "r50k_base",
    "p50k_base",
    "p50k_edit",
    "cl100k_base",
    "whisper_gpt2",
    "whisper_multilingual",
    "get_encoding",
    "encoding_for_model",
]
