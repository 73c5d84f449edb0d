"""
Rule violations raised by the engine.

Every violation carries the short wire ``reason`` that is reported to the
offending connection as ``{"message": "error", "error": reason}``.
"""
from typing import Optional


class GameError(ValueError):
    """An action rejected by the rules. No state was changed."""

    def __init__(self, reason: str, detail: Optional[str] = None):
        super().__init__(detail or reason)
        self.reason = reason
        self.detail = detail or reason


# Wire reasons
TURN = "turn"
MESSAGE = "message"
BUILD = "build"
BUY_DEVELOP = "buyDevelop"
DEVELOP = "develop"
OFFER = "offer"
CONFIRM = "confirm"
CANCEL = "cancel"
DISCARD = "discard"
ROBBER = "robber"
STEAL = "steal"
MALFORMED = "malformedMessage"
