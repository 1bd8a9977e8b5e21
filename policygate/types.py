"""
Core type definitions for policygate.

This module defines the option structure accepted by every authorization
operation, and the sentinel used to tell "no user supplied" apart from an
anonymous (``None``) user.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from policygate.policies.base import Policy


class _Unset:
    """Marker type for options that were not supplied."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


@dataclass(frozen=True)
class AuthorizationOptions:
    """
    Options for a single authorization call.

    Every recognized option is an explicit field, so nothing is ever
    forwarded implicitly. In particular the policy only ever receives
    ``context``, never the options themselves.

    Attributes:
        user: The actor to authorize. ``UNSET`` means "use the current
            user"; ``None`` is a legal anonymous actor.
        policy: Explicit policy class, bypassing convention lookup.
        context: Side-channel value handed to the policy constructor.
            Defaults to an empty dict.
        action: Action name (e.g. "update" or "update?"). ``None`` means
            "use the action currently being handled".

    Example:
        >>> options = AuthorizationOptions(action="publish", context={"ip": "127.0.0.1"})
        >>> options.has_user
        False
    """
    user: Any = UNSET
    policy: type[Policy] | None = None
    context: Any = None
    action: str | None = None

    @property
    def has_user(self) -> bool:
        """Whether an explicit user (possibly None) was supplied."""
        return self.user is not UNSET

    def resolved_context(self) -> Any:
        """The context to hand to the policy; a fresh dict when absent."""
        return {} if self.context is None else self.context

    def without_action(self) -> AuthorizationOptions:
        """Copy of these options with the action stripped."""
        return replace(self, action=None)
