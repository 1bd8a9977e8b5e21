"""
Built-in policies for policygate.

This module provides commonly used policy implementations that can be
used as base classes or as a registry's default policy.
"""

from __future__ import annotations

import logging
from typing import Any

from policygate.policies.base import DEFAULT_PREDICATE_PREFIX, Policy, Scope

logger = logging.getLogger(__name__)


class ApplicationPolicy(Policy[Any]):
    """
    Conventional base class for application policies.

    Denies the seven resourceful actions (index, show, create, new,
    update, edit, destroy) until a subclass says otherwise. ``new``
    follows ``create`` and ``edit`` follows ``update``, so overriding
    ``can_create`` also answers the form action.

    Example:
        >>> class PostPolicy(ApplicationPolicy):
        ...     def can_show(self) -> bool:
        ...         return True
        ...
        ...     def can_update(self) -> bool:
        ...         return self.user is not None and self.resource.author_id == self.user.id
    """

    def can_index(self) -> bool:
        return False

    def can_show(self) -> bool:
        return False

    def can_create(self) -> bool:
        return False

    def can_new(self) -> bool:
        return self.can_create()

    def can_update(self) -> bool:
        return False

    def can_edit(self) -> bool:
        return self.can_update()

    def can_destroy(self) -> bool:
        return False

    class Scope(Scope[Any]):
        """Default scope; subclasses must say what the user may see."""

        def resolve(self) -> Any:
            raise NotImplementedError(
                f"{type(self).__qualname__} does not define resolve(); "
                "override Scope.resolve on the policy"
            )


class DenyAllPolicy(Policy[Any]):
    """
    Policy that denies all actions.

    This is the safest default policy. Use it as the default policy in
    the registry to deny any target nobody wrote a policy for, instead of
    failing with PolicyResolutionError.

    Example:
        >>> registry = PolicyRegistry(default_policy=DenyAllPolicy)
    """

    def authorize(self, action: str, prefix: str = DEFAULT_PREDICATE_PREFIX) -> bool:
        """Deny every action, whether or not a predicate exists."""
        logger.debug(f"DenyAllPolicy: denying '{action}' on {self.resource!r}")
        return False

    @property
    def scope(self) -> Any:
        """Nothing is visible."""
        return []


class AllowAllPolicy(Policy[Any]):
    """
    Policy that allows all actions.

    WARNING: This policy should ONLY be used for testing or in
    development environments. A warning is logged every time it is
    instantiated to help catch accidental production usage.
    """

    def __init__(self, user: Any, resource: Any = None, context: Any = None) -> None:
        """Initialize with a security warning."""
        super().__init__(user, resource, context)
        logger.warning(
            f"AllowAllPolicy instantiated for user {user!r}. "
            "This policy allows ALL actions and should NOT be used in production!"
        )

    def authorize(self, action: str, prefix: str = DEFAULT_PREDICATE_PREFIX) -> bool:
        """Allow every action, whether or not a predicate exists."""
        logger.debug(f"AllowAllPolicy: allowing '{action}' on {self.resource!r}")
        return True

    @property
    def scope(self) -> Any:
        """Everything is visible."""
        return self.resource
