"""
Inbound wire messages.

Clients send JSON objects with a ``message`` discriminator. Each known
discriminator maps to a pydantic model; anything that does not validate is
reported as ``malformedMessage``.
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, NonNegativeInt, ValidationError, conlist

from .constants import BuildType, DevCard, Resource
from .errors import GameError, MALFORMED, MESSAGE


class InboundMessage(BaseModel):
    """Base for all client messages."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    message: str


class BuildMessage(InboundMessage):
    type: BuildType
    x: int
    y: int
    d: int


class BuyDevelopMessage(InboundMessage):
    pass


class DevelopMessage(InboundMessage):
    card: DevCard
    # year_of_plenty: the two resources to take
    resources: Optional[conlist(Resource, min_length=2, max_length=2)] = None
    # monopoly: the resource to collect
    resource: Optional[Resource] = None


class TurnMessage(InboundMessage):
    start: Optional[bool] = None


class OfferMessage(InboundMessage):
    offer: Dict[Resource, NonNegativeInt]


class ConfirmMessage(InboundMessage):
    player: int


class CancelMessage(InboundMessage):
    pass


class DiscardMessage(InboundMessage):
    resources: Dict[Resource, NonNegativeInt]


class RobberMessage(InboundMessage):
    x: int
    y: int


class StealMessage(InboundMessage):
    player: int


class ChatMessage(InboundMessage):
    text: str


MESSAGE_TYPES = {
    "build": BuildMessage,
    "buyDevelop": BuyDevelopMessage,
    "develop": DevelopMessage,
    "turn": TurnMessage,
    "offer": OfferMessage,
    "confirm": ConfirmMessage,
    "cancel": CancelMessage,
    "discard": DiscardMessage,
    "robber": RobberMessage,
    "steal": StealMessage,
    "chat": ChatMessage,
}

# Names used by older clients
MESSAGE_ALIASES = {
    "discardResources": "discard",
    "moveRobber": "robber",
}


def parse_message(data: Any) -> InboundMessage:
    """Validate a decoded JSON payload into its message model.

    Raises GameError(``malformedMessage``) for payloads that do not validate
    and GameError(``message``) for unknown discriminators.
    """
    if not isinstance(data, dict):
        raise GameError(MALFORMED, "Message must be a JSON object")
    name = data.get("message")
    if not isinstance(name, str):
        raise GameError(MALFORMED, "Message has no 'message' field")

    name = MESSAGE_ALIASES.get(name, name)
    model = MESSAGE_TYPES.get(name)
    if model is None:
        raise GameError(MESSAGE, f"Unknown message '{name}'")

    try:
        return model.model_validate({**data, "message": name})
    except ValidationError as e:
        raise GameError(MALFORMED, f"Invalid '{name}' message: {e.error_count()} error(s)") from e
