"""Map action strings to the handler kind that serves them."""

from __future__ import annotations

from dataclasses import dataclass

from slack_command_bridge.actions import ActionRegistry, RegisteredAction
from slack_command_bridge.errors import UnknownActionError
from slack_command_bridge.requests import ACTION_SEPARATOR, WELCOME_ACTION

SUBMIT_SUFFIX = "submit"


@dataclass(frozen=True)
class Welcome:
    """Show the menu of available actions."""


@dataclass(frozen=True)
class Form:
    """Collect input for ``base`` before it is submitted."""

    base: str


@dataclass(frozen=True)
class Submit:
    """Run the job registered under ``base``."""

    base: str


Route = Welcome | Form | Submit


def parse_route(action: str) -> Route:
    """Parse *action* into exactly one route variant.

    ``welcome`` is the menu, ``<base>`` a form and ``<base>/submit`` a submit.
    Anything else raises ``UnknownActionError``.
    """

    action = (action or "").strip()
    if not action:
        raise UnknownActionError("Action is empty")
    if action == WELCOME_ACTION:
        return Welcome()

    base, separator, suffix = action.partition(ACTION_SEPARATOR)
    if not base:
        raise UnknownActionError(f"Action '{action}' has no base")
    if not separator:
        return Form(base=base)
    if suffix == SUBMIT_SUFFIX:
        return Submit(base=base)
    raise UnknownActionError(f"Action '{action}' has an unsupported suffix")


def resolve_route(action: str, registry: ActionRegistry) -> tuple[Route, RegisteredAction | None]:
    """Parse *action* and look up its registered action.

    The registered action is ``None`` only for :class:`Welcome`.
    """

    route = parse_route(action)
    if isinstance(route, Welcome):
        return route, None
    return route, registry.require(route.base)
