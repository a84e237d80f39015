"""bpekit: tokenizer configurations for OpenAI-style BPE model families."""

from .errors import (
    AllocationCollisionError,
    BpeKitError,
    EngineConstructionError,
    PatternError,
    ProfileError,
    ResourceNotFoundError,
    ResourceParseError,
    VocabularyLoadError,
)
from .factory import (
    EncodingParams,
    build_params,
    cl100k_base,
    construct,
    encoding_for_model,
    get_encoding,
    p50k_base,
    p50k_edit,
    r50k_base,
    whisper_gpt2,
    whisper_multilingual,
)
from .pattern import SplitPattern, list_patterns
from .profiles import (
    ModelProfile,
    encoding_name_for_model,
    get_profile,
    list_encodings,
)
from .settings import (
    disable_strict_ranks,
    enable_strict_ranks,
    get_assets_dir,
    set_assets_dir,
)
from .special import FixedScheme, SequentialScheme, check_collisions
from .vocab import VocabularyTable, load_vocabulary, parse_ranks

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("bpekit")
except PackageNotFoundError:
    __version__ = "dev"

__all__ = [
    "BpeKitError",
    "ResourceParseError",
    "ResourceNotFoundError",
    "VocabularyLoadError",
    "AllocationCollisionError",
    "EngineConstructionError",
    "PatternError",
    "ProfileError",
    "VocabularyTable",
    "parse_ranks",
    "load_vocabulary",
    "FixedScheme",
    "SequentialScheme",
    "check_collisions",
    "SplitPattern",
    "list_patterns",
    "ModelProfile",
    "get_profile",
    "list_encodings",
    "encoding_name_for_model",
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
    "set_assets_dir",
    "get_assets_dir",
    "enable_strict_ranks",
    "disable_strict_ranks",
]
