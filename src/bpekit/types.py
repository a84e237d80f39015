"""
Core types for vocabulary assembly.
"""

from typing import TypeAlias

Rank: TypeAlias = int
TokenBytes: TypeAlias = bytes
Ranks: TypeAlias = dict[TokenBytes, Rank]
SpecialTokens: TypeAlias = dict[str, Rank]
