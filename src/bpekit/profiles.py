"""Per-family tokenizer profiles and model name lookup."""

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Final, Literal

from .errors import ProfileError
from .pattern import SplitPattern
from .special import (
    ENDOFPROMPT,
    ENDOFTEXT,
    FIM_MIDDLE,
    FIM_PREFIX,
    FIM_SUFFIX,
    FixedScheme,
    SequentialScheme,
    SpecialTokenScheme,
    whisper_token_names,
)
from .types import SpecialTokens

EncodingName = Literal[
    "r50k_base",
    "gpt2",
    "p50k_base",
    "p50k_edit",
    "cl100k_base",
    "whisper_gpt2",
    "whisper_multilingual",
]


@dataclass(frozen=True)
class ModelProfile:
    """Static configuration for one model family."""

    name: str
    # rank table resource file name
    asset: str
    pattern: str
    scheme: SpecialTokenScheme
    # vocabulary entries + special tokens, as published upstream
    n_vocab: int
    allow_empty_sentinel: bool = False
    # identifiers fill 0..n_vocab-1 without gaps; the engine asserts this too
    dense: bool = False

    def allocate(self, vocab_size: int) -> SpecialTokens:
        """Return this family's special tokens for a vocabulary of ``vocab_size`` entries."""
        return self.scheme.allocate(vocab_size)


_WHISPER_SCHEME = SequentialScheme(whisper_token_names())

_R50K = ModelProfile(
    name="r50k_base",
    asset="r50k_base.tiktoken",
    pattern=SplitPattern.R50K.value,
    scheme=FixedScheme([(ENDOFTEXT, 50256)]),
    n_vocab=50257,
    dense=True,
)

PROFILES: Final[Mapping[str, ModelProfile]] = MappingProxyType(
    {
        "r50k_base": _R50K,
        "gpt2": _R50K,
        "p50k_base": ModelProfile(
            name="p50k_base",
            asset="p50k_base.tiktoken",
            pattern=SplitPattern.R50K.value,
            scheme=FixedScheme([(ENDOFTEXT, 50256)]),
            n_vocab=50281,
            dense=True,
        ),
        "p50k_edit": ModelProfile(
            name="p50k_edit",
            asset="p50k_base.tiktoken",
            pattern=SplitPattern.R50K.value,
            scheme=FixedScheme(
                [
                    (ENDOFTEXT, 50256),
                    (FIM_PREFIX, 50281),
                    (FIM_MIDDLE, 50282),
                    (FIM_SUFFIX, 50283),
                ]
            ),
            n_vocab=50284,
            dense=True,
        ),
        "cl100k_base": ModelProfile(
            name="cl100k_base",
            asset="cl100k_base.tiktoken",
            pattern=SplitPattern.CL100K.value,
            scheme=FixedScheme(
                [
                    (ENDOFTEXT, 100257),
                    (FIM_PREFIX, 100258),
                    (FIM_MIDDLE, 100259),
                    (FIM_SUFFIX, 100260),
                    (ENDOFPROMPT, 100276),
                ]
            ),
            n_vocab=100261,
        ),
        "whisper_gpt2": ModelProfile(
            name="whisper_gpt2",
            asset="r50k_base.tiktoken",
            pattern=SplitPattern.R50K.value,
            scheme=_WHISPER_SCHEME,
            n_vocab=51864,
            dense=True,
        ),
        "whisper_multilingual": ModelProfile(
            name="whisper_multilingual",
            asset="whisper_multilingual.tiktoken",
            pattern=SplitPattern.R50K.value,
            scheme=_WHISPER_SCHEME,
            n_vocab=51865,
            allow_empty_sentinel=True,
        ),
    }
)


def list_encodings() -> list[str]:
    """Return names of all registered encodings, aliases included."""
    return list(PROFILES.keys())


def get_profile(name: EncodingName | str) -> ModelProfile:
    """
    Look up a model family profile by encoding name.

    :raises ProfileError: If no profile is registered under ``name``.
    """
    try:
        return PROFILES[name]
    except KeyError:
        raise ProfileError(
            "unknown encoding name", name=name, available=list_encodings()
        ) from None


# Model name lookup
# ===================================================================================

# Source: https://github.com/openai/tiktoken/blob/main/tiktoken/model.py
MODEL_PREFIX_TO_ENCODING: Final[Mapping[str, str]] = MappingProxyType(
    {
        # chat
        "gpt-4-": "cl100k_base",
        "gpt-3.5-turbo-": "cl100k_base",
        "gpt-35-turbo-": "cl100k_base",
        # fine-tuned
        "ft:gpt-4": "cl100k_base",
        "ft:gpt-3.5-turbo": "cl100k_base",
        "ft:davinci-002": "cl100k_base",
        "ft:babbage-002": "cl100k_base",
    }
)

MODEL_TO_ENCODING: Final[Mapping[str, str]] = MappingProxyType(
    {
        # chat
        "gpt-4": "cl100k_base",
        "gpt-3.5-turbo": "cl100k_base",
        "gpt-3.5": "cl100k_base",
        "gpt-35-turbo": "cl100k_base",
        # base
        "davinci-002": "cl100k_base",
        "babbage-002": "cl100k_base",
        # embeddings
        "text-embedding-ada-002": "cl100k_base",
        "text-embedding-3-small": "cl100k_base",
        "text-embedding-3-large": "cl100k_base",
        # text
        "text-davinci-003": "p50k_base",
        "text-davinci-002": "p50k_base",
        "text-davinci-001": "r50k_base",
        "text-curie-001": "r50k_base",
        "text-babbage-001": "r50k_base",
        "text-ada-001": "r50k_base",
        "davinci": "r50k_base",
        "curie": "r50k_base",
        "babbage": "r50k_base",
        "ada": "r50k_base",
        # code
        "code-davinci-002": "p50k_base",
        "code-davinci-001": "p50k_base",
        "code-cushman-002": "p50k_base",
        "code-cushman-001": "p50k_base",
        "davinci-codex": "p50k_base",
        "cushman-codex": "p50k_base",
        # edit
        "text-davinci-edit-001": "p50k_edit",
        "code-davinci-edit-001": "p50k_edit",
        # old embeddings
        "text-similarity-davinci-001": "r50k_base",
        "text-similarity-curie-001": "r50k_base",
        "text-similarity-babbage-001": "r50k_base",
        "text-similarity-ada-001": "r50k_base",
        "text-search-davinci-doc-001": "r50k_base",
        "text-search-curie-doc-001": "r50k_base",
        "text-search-babbage-doc-001": "r50k_base",
        "text-search-ada-doc-001": "r50k_base",
        "code-search-babbage-code-001": "r50k_base",
        "code-search-ada-code-001": "r50k_base",
        # open source
        "gpt2": "gpt2",
        # speech: english-only checkpoints use the gpt2 ranks
        "tiny.en": "whisper_gpt2",
        "base.en": "whisper_gpt2",
        "small.en": "whisper_gpt2",
        "medium.en": "whisper_gpt2",
        "tiny": "whisper_multilingual",
        "base": "whisper_multilingual",
        "small": "whisper_multilingual",
        "medium": "whisper_multilingual",
        "large": "whisper_multilingual",
        "large-v1": "whisper_multilingual",
        "large-v2": "whisper_multilingual",
    }
)


def encoding_name_for_model(model: str) -> str:
    """
    Return the encoding name used by ``model``.

    Exact model names are checked first, then known prefixes such as
    ``gpt-4-`` for dated snapshots.

    :raises ProfileError: If the model cannot be mapped to an encoding.
    """
    if model in MODEL_TO_ENCODING:
        return MODEL_TO_ENCODING[model]

    for prefix, encoding_name in MODEL_PREFIX_TO_ENCODING.items():
        if model.startswith(prefix):
            return encoding_name

    raise ProfileError(
        "could not map model to an encoding, use get_encoding() to pick one explicitly",
        name=model,
        available=sorted(MODEL_TO_ENCODING),
    )


__all__ = [
    "EncodingName",
    "ModelProfile",
    "PROFILES",
    "MODEL_TO_ENCODING",
    "MODEL_PREFIX_TO_ENCODING",
    "list_encodings",
    "get_profile",
    "encoding_name_for_model",
]
