"""
Rank table parsing into an immutable byte-sequence <-> rank vocabulary.
"""

import base64
import binascii
import logging
from collections.abc import Iterator, Mapping
from types import MappingProxyType

from .errors import ResourceParseError
from .settings import resolve_asset
from .types import Rank, Ranks, TokenBytes

log = logging.getLogger(__name__)

# whisper_multilingual stores the empty token as a lone padding character
EMPTY_TOKEN_SENTINEL = "="


def describe_token(tok: TokenBytes) -> str:
    """Render token bytes for messages: printable UTF-8 as text, anything else as hex."""
    try:
        text = tok.decode("utf-8")
    except UnicodeDecodeError:
        return tok.hex(" ")
    return text if text.isprintable() else repr(text)


class VocabularyTable:
    """
    Immutable mapping from token bytes to rank, with the inverse lookup.

    Entries keep the order they were read in.
    """

    def __init__(self, ranks: Mapping[TokenBytes, Rank], source: str = "<memory>") -> None:
        """Wrap an already validated token -> rank mapping."""
        self.source = source
        self._ranks: Mapping[TokenBytes, Rank] = MappingProxyType(dict(ranks))
        self._tokens: Mapping[Rank, TokenBytes] = MappingProxyType(
            {rank: tok for tok, rank in self._ranks.items()}
        )

    @property
    def ranks(self) -> Mapping[TokenBytes, Rank]:
        """Read-only token -> rank view."""
        return self._ranks

    @property
    def max_rank(self) -> Rank:
        """Largest rank in the table, -1 when empty."""
        return max(self._tokens, default=-1)

    def rank_of(self, token: TokenBytes) -> Rank:
        return self._ranks[token]

    def token_for(self, rank: Rank) -> TokenBytes:
        return self._tokens[rank]

    def has_rank(self, rank: Rank) -> bool:
        return rank in self._tokens

    def missing_ranks(self) -> list[Rank]:
        """Return ranks in ``0..max_rank`` that no token holds."""
        return [rank for rank in range(self.max_rank + 1) if rank not in self._tokens]

    def validate_order(self) -> None:
        """
        Check that ranks strictly increase in the order entries were read.

        :raises ResourceParseError: On the first rank that does not exceed its predecessor.
        """
        prev = -1
        for line_no, (tok, rank) in enumerate(self._ranks.items(), start=1):
            if rank <= prev:
                raise ResourceParseError(
                    f"rank {rank} out of order after {prev} for token [{describe_token(tok)}]",
                    source=self.source,
                    line_no=line_no,
                )
            prev = rank

    def to_dict(self) -> Ranks:
        """Return a mutable copy, as the encoding engine expects."""
        return dict(self._ranks)

    def __len__(self) -> int:
        return len(self._ranks)

    def __contains__(self, token: object) -> bool:
        return token in self._ranks

    def __iter__(self) -> Iterator[TokenBytes]:
        return iter(self._ranks)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VocabularyTable):
            return NotImplemented
        return dict(self._ranks) == dict(other._ranks)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(source={self.source!r}, size={len(self)})"


def _decode_token(field: str, allow_empty_sentinel: bool) -> TokenBytes:
    """Decode one base64 field, honouring the empty-token sentinel when allowed."""
    # must be checked before generic decoding, which would treat "=" as padding
    if allow_empty_sentinel and field == EMPTY_TOKEN_SENTINEL:
        return b""
    if not field or len(field) % 4 != 0:
        raise ValueError("base64 field length is not a multiple of 4")
    return base64.b64decode(field, validate=True)


def parse_ranks(
    text: str, *, source: str = "<memory>", allow_empty_sentinel: bool = False
) -> VocabularyTable:
    """
    Parse a rank table into a vocabulary.

    Every line must read ``<base64-token> <decimal-rank>``. Lines are consumed
    in file order and the whole table is rejected on the first bad line.

    :param text: Full contents of the rank table.
    :param source: Resource name used in error messages.
    :param allow_empty_sentinel: Treat a lone ``=`` as the empty token.
    :return: The parsed vocabulary.
    :raises ResourceParseError: On a missing field, bad base64, a non-numeric
                                rank, or a duplicated token or rank.
    """
    ranks: dict[TokenBytes, Rank] = {}
    seen_ranks: dict[Rank, int] = {}

    for line_no, line in enumerate(text.splitlines(), start=1):
        parts = line.split(" ")
        if len(parts) != 2:
            raise ResourceParseError(
                "expected '<base64-token> <rank>'",
                source=source,
                line_no=line_no,
                line=line,
            )
        raw_tok, raw_rank = parts

        try:
            tok = _decode_token(raw_tok, allow_empty_sentinel)
        except (binascii.Error, ValueError) as e:
            raise ResourceParseError(
                f"invalid base64 token: {e}", source=source, line_no=line_no, line=line
            ) from e

        # int() alone would accept signs, underscores and non-ascii digits
        if not (raw_rank.isascii() and raw_rank.isdigit()):
            raise ResourceParseError(
                "rank is not a non-negative integer",
                source=source,
                line_no=line_no,
                line=line,
            )
        rank = int(raw_rank)

        if tok in ranks:
            raise ResourceParseError(
                f"duplicate token [{describe_token(tok)}]",
                source=source,
                line_no=line_no,
                line=line,
            )
        if rank in seen_ranks:
            raise ResourceParseError(
                f"rank {rank} already used on line {seen_ranks[rank]}",
                source=source,
                line_no=line_no,
                line=line,
            )

        ranks[tok] = rank
        seen_ranks[rank] = line_no

    log.debug(f"parsed {len(ranks)} ranks from {source}")
    return VocabularyTable(ranks, source=source)


def load_vocabulary(resource: str, *, allow_empty_sentinel: bool = False) -> VocabularyTable:
    """
    Load a rank table resource by name.

    :param resource: Resource file name, resolved through :mod:`bpekit.settings`.
    :param allow_empty_sentinel: Treat a lone ``=`` as the empty token.
    :raises ResourceNotFoundError: If the resource cannot be located.
    :raises ResourceParseError: If the resource is unreadable, malformed or not UTF-8.
    """
    path = resolve_asset(resource)
    log.info(f"loading rank table {resource}")
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ResourceParseError("rank table is not valid UTF-8", source=resource) from e
    except OSError as e:
        raise ResourceParseError(f"rank table could not be read: {e}", source=resource) from e
    return parse_ranks(text, source=resource, allow_empty_sentinel=allow_empty_sentinel)
