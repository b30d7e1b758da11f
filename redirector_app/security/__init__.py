"""
Security primitives for the redirector: signed link tokens and the bot gate.
"""

from .token_codec import TokenCodec
from .bot_gate import BotGate, Verdict, Rule

__all__ = [
    "TokenCodec",
    "BotGate",
    "Verdict",
    "Rule",
]
