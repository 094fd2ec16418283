"""Typed view of the Discord interaction payloads the relay handles."""

from dataclasses import dataclass, field
from typing import Dict, Optional, Union


PING = 1
APPLICATION_COMMAND = 2
MESSAGE_COMPONENT = 3


class MalformedInteraction(ValueError):
    """The interaction payload is missing the fields its type requires."""
    pass


@dataclass
class Ping:
    pass


@dataclass
class Command:
    name: str
    token: str
    options: Dict[str, str] = field(default_factory=dict)


@dataclass
class ComponentAction:
    custom_id: str
    token: str
    message: Dict = field(default_factory=dict)


Interaction = Union[Ping, Command, ComponentAction]


def parse_interaction(payload: Optional[Dict]) -> Interaction:
    """Turn a raw interaction body into a Ping, Command or ComponentAction.

    Raises:
        MalformedInteraction: If the type is unknown or required fields are absent
    """
    if not isinstance(payload, dict):
        raise MalformedInteraction("Interaction body must be a JSON object")

    kind = payload.get("type")
    if kind == PING:
        return Ping()

    token = payload.get("token")
    data = payload.get("data") or {}
    if not token:
        raise MalformedInteraction("Interaction has no token")

    if kind == APPLICATION_COMMAND:
        name = data.get("name")
        if not name:
            raise MalformedInteraction("Command interaction has no name")
        options = {o["name"]: str(o.get("value", "")).strip()
                   for o in data.get("options") or [] if "name" in o}
        return Command(name=name, token=token, options=options)

    if kind == MESSAGE_COMPONENT:
        custom_id = data.get("custom_id")
        if not custom_id:
            raise MalformedInteraction("Component interaction has no custom_id")
        return ComponentAction(custom_id=custom_id, token=token,
                               message=payload.get("message") or {})

    raise MalformedInteraction(f"Unsupported interaction type: {kind}")
