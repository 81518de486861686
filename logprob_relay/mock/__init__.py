"""Scripted offline upstream."""

from .client import ScriptedStream, ScriptedToken, ScriptedUpstream, script_from_text

__all__ = ["ScriptedStream", "ScriptedToken", "ScriptedUpstream", "script_from_text"]
