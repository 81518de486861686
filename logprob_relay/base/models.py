"""Domain models for the relay (stable import path).

Implementations live one-per-file under ``base.models_parts``; import from
here in application code.
"""

from .models_parts import (
    PRESETS,
    Alt,
    ChatMessage,
    CompletionLP,
    FinalSummary,
    Fragment,
    ModelInfo,
    Role,
    RunParameters,
    TextFragment,
    TokenFragment,
    TokenLP,
    UpstreamChoice,
    UpstreamRequest,
    Usage,
    clamp,
    normalize_token_fragment,
)

__all__ = [
    "PRESETS",
    "Alt",
    "ChatMessage",
    "CompletionLP",
    "FinalSummary",
    "Fragment",
    "ModelInfo",
    "Role",
    "RunParameters",
    "TextFragment",
    "TokenFragment",
    "TokenLP",
    "UpstreamChoice",
    "UpstreamRequest",
    "Usage",
    "clamp",
    "normalize_token_fragment",
]
