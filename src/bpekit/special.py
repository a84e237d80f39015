"""Special token identifiers: fixed historical tables and sequential allocation."""

import logging
from collections import Counter
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Final

from typing_extensions import override

from .errors import AllocationCollisionError
from .types import Rank, SpecialTokens
from .vocab import VocabularyTable

log = logging.getLogger(__name__)

ENDOFTEXT: Final[str] = "<|endoftext|>"
FIM_PREFIX: Final[str] = "<|fim_prefix|>"
FIM_MIDDLE: Final[str] = "<|fim_middle|>"
FIM_SUFFIX: Final[str] = "<|fim_suffix|>"
ENDOFPROMPT: Final[str] = "<|endofprompt|>"
STARTOFTRANSCRIPT: Final[str] = "<|startoftranscript|>"
TRANSLATE: Final[str] = "<|translate|>"
TRANSCRIBE: Final[str] = "<|transcribe|>"
STARTOFLM: Final[str] = "<|startoflm|>"
STARTOFPREV: Final[str] = "<|startofprev|>"
NOSPEECH: Final[str] = "<|nospeech|>"
NOTIMESTAMPS: Final[str] = "<|notimestamps|>"

# enumeration order, not alphabetical: reordering shifts every identifier after it
LANGUAGES: Final[tuple[str, ...]] = (
    "en", "zh", "de", "es", "ru", "ko", "fr", "ja", "pt", "tr", "pl", "ca", "nl", "ar", "sv", "it",
    "id", "hi", "fi", "vi", "he", "uk", "el", "ms", "cs", "ro", "da", "hu", "ta", "no", "th", "ur",
    "hr", "bg", "lt", "la", "mi", "ml", "cy", "sk", "te", "fa", "lv", "bn", "sr", "az", "sl", "kn",
    "et", "mk", "br", "eu", "is", "hy", "ne", "mn", "bs", "kk", "sq", "sw", "gl", "mr", "pa", "si",
    "km", "sn", "yo", "so", "af", "oc", "ka", "be", "tg", "sd", "gu", "am", "yi", "lo", "uz", "fo",
    "ht", "ps", "tk", "nn", "mt", "sa", "lb", "my", "bo", "tl", "mg", "as", "tt", "haw", "ln",
    "ha", "ba", "jw", "su",
)  # fmt: skip

TASK_TOKENS: Final[tuple[str, ...]] = (
    TRANSLATE,
    TRANSCRIBE,
    STARTOFLM,
    STARTOFPREV,
    NOSPEECH,
    NOTIMESTAMPS,
)

N_TIMESTAMPS: Final[int] = 1501
TIMESTAMP_STEP: Final[float] = 0.02


def language_token(code: str) -> str:
    return f"<|{code}|>"


def timestamp_token(i: int) -> str:
    """Name of the ``i``-th timestamp token, ``i * 0.02`` seconds with two decimals."""
    return f"<|{i * TIMESTAMP_STEP:.2f}|>"


def whisper_token_names() -> tuple[str, ...]:
    """
    Return the whisper special token names in allocation order.

    endoftext, startoftranscript, one tag per language, the task/control
    tokens, then 1501 timestamps from ``<|0.00|>`` to ``<|30.00|>``.
    """
    return (
        ENDOFTEXT,
        STARTOFTRANSCRIPT,
        *(language_token(code) for code in LANGUAGES),
        *TASK_TOKENS,
        *(timestamp_token(i) for i in range(N_TIMESTAMPS)),
    )


# =========================================================================================

# allocation schemes


def _reject_duplicate_names(names: Iterable[str]) -> None:
    dupes = [name for name, n in Counter(names).items() if n > 1]
    if dupes:
        raise AllocationCollisionError("special token listed more than once", names=dupes)


class SpecialTokenScheme(ABC):
    """Base scheme for assigning identifiers to special tokens."""

    @abstractmethod
    def allocate(self, vocab_size: int) -> SpecialTokens:
        """Return the name -> identifier mapping for a vocabulary of ``vocab_size`` entries."""

    @abstractmethod
    def __len__(self) -> int:
        """Number of special tokens the scheme produces."""


class FixedScheme(SpecialTokenScheme):
    """Scheme reproducing a hand-specified, externally published identifier table."""

    def __init__(self, tokens: Iterable[tuple[str, Rank]]) -> None:
        super().__init__()
        self.tokens: tuple[tuple[str, Rank], ...] = tuple(tokens)

    @override
    def allocate(self, vocab_size: int) -> SpecialTokens:
        """
        Return the literal table; identifiers do not depend on ``vocab_size``.

        :raises AllocationCollisionError: If a name is listed twice.
        """
        _reject_duplicate_names([name for name, _ in self.tokens])
        return dict(self.tokens)

    @override
    def __len__(self) -> int:
        return len(self.tokens)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({list(self.tokens)!r})"


class SequentialScheme(SpecialTokenScheme):
    """Scheme assigning ``offset + position`` to each name, starting right after the vocabulary."""

    def __init__(self, names: Iterable[str]) -> None:
        super().__init__()
        self.names: tuple[str, ...] = tuple(names)

    @override
    def allocate(self, vocab_size: int) -> SpecialTokens:
        """
        Assign identifiers starting at ``vocab_size``.

        The first name gets exactly ``vocab_size`` and each following name
        one more than the last.

        :param vocab_size: Number of entries in the already built vocabulary.
        :raises AllocationCollisionError: If a name is listed twice.
        """
        _reject_duplicate_names(self.names)
        return {name: vocab_size + idx for idx, name in enumerate(self.names)}

    @override
    def __len__(self) -> int:
        return len(self.names)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(<{len(self.names)} names>)"


# =========================================================================================


def check_collisions(vocab: VocabularyTable, special_toks: SpecialTokens) -> None:
    """
    Verify special token identifiers are unique and outside the vocabulary.

    Collisions are reported, never renumbered.

    :param vocab: Vocabulary the special tokens will be paired with.
    :param special_toks: Name -> identifier mapping.
    :raises AllocationCollisionError: If two special tokens share an identifier
                                      or an identifier is already a vocabulary rank.
    """
    by_id: dict[Rank, list[str]] = {}
    for seq, tok in special_toks.items():
        by_id.setdefault(tok, []).append(seq)

    for tok, seqs in by_id.items():
        if len(seqs) > 1:
            raise AllocationCollisionError(
                "special tokens share an identifier", identifier=tok, names=seqs
            )
        if tok < 0:
            raise AllocationCollisionError(
                "special token identifier is negative", identifier=tok, names=seqs
            )
        if vocab.has_rank(tok):
            raise AllocationCollisionError(
                "special token identifier overlaps with vocabulary",
                identifier=tok,
                names=seqs,
            )

    log.debug(f"{len(special_toks)} special tokens clear of {len(vocab)} ranks")


__all__ = [
    "ENDOFTEXT",
    "FIM_PREFIX",
    "FIM_MIDDLE",
    "FIM_SUFFIX",
    "ENDOFPROMPT",
    "STARTOFTRANSCRIPT",
    "TRANSLATE",
    "TRANSCRIBE",
    "STARTOFLM",
    "STARTOFPREV",
    "NOSPEECH",
    "NOTIMESTAMPS",
    "LANGUAGES",
    "TASK_TOKENS",
    "N_TIMESTAMPS",
    "language_token",
    "timestamp_token",
    "whisper_token_names",
    "SpecialTokenScheme",
    "FixedScheme",
    "SequentialScheme",
    "check_collisions",
]
