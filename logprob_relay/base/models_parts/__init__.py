"""Model parts package: one dataclass per module, re-exported by ``base.models``."""

from .alt import Alt, parse_logprob, wire_logprob
from .chat_message import ChatMessage, Role
from .completion_lp import CompletionLP
from .final_summary import FinalSummary
from .fragment import Fragment, TextFragment, TokenFragment, normalize_token_fragment
from .model_info import ModelInfo
from .run_parameters import PRESETS, RunParameters, clamp
from .token_lp import TokenLP
from .upstream_choice import UpstreamChoice
from .upstream_request import UpstreamRequest
from .usage import Usage

__all__ = [
    "Alt",
    "ChatMessage",
    "CompletionLP",
    "FinalSummary",
    "Fragment",
    "ModelInfo",
    "PRESETS",
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
    "parse_logprob",
    "wire_logprob",
]
