"""
Policy base classes for policygate.

This module implements a Pundit-style policy pattern for Python. A policy
is a small object bound to (user, resource, context) that answers yes/no
questions about actions, knows how to narrow a collection down to what the
user may see, and declares which payload fields the user may write.

The optional members (``param_key``, ``permitted_attributes`` and its
action-specific variants, ``Scope``) all have safe defaults here, so the
authorization layer asks the policy for them instead of probing for their
existence.
"""

from __future__ import annotations

from abc import ABC
from collections.abc import Callable, Iterable
from typing import Any, Generic, TypeVar

from policygate.exceptions import NoSuchActionError

# Type variable for the resource being authorized
T = TypeVar("T")

DEFAULT_PREDICATE_PREFIX = "can_"
DEFAULT_PERMITTED_ATTRIBUTES_METHOD = "permitted_attributes"


def normalize_action(action: str) -> str:
    """
    Strip the predicate marker from an action name.

    Example:
        >>> normalize_action("update?")
        'update'
    """
    return str(action).rstrip("?")


class Scope(Generic[T]):
    """
    Base class for filtering collections based on user permissions.

    The Scope pattern narrows a collection of resources to the ones the
    user is allowed to see. It is used by ``policy_scope`` for listing
    operations.

    Example:
        >>> class PostScope(Scope[Post]):
        ...     def resolve(self) -> list[Post]:
        ...         if self.user.is_admin:
        ...             return list(self.scope)
        ...         return [p for p in self.scope if p.published]
    """

    def __init__(self, user: Any, scope: Any, context: Any = None) -> None:
        """
        Initialize a scope instance.

        Args:
            user: The requesting user (may be None).
            scope: The initial collection (or class) to filter.
            context: The context the owning policy was built with.
        """
        self.user = user
        self.scope = scope
        self.context = {} if context is None else context

    def resolve(self) -> Any:
        """
        Filter the scope to authorized items.

        Subclasses should override this method to implement
        their filtering logic.
        """
        # Default implementation returns empty list (safe default)
        return []


class Policy(ABC, Generic[T]):
    """
    Abstract base class for all policygate policies.

    Each policy class corresponds to a resource type. Following the
    naming convention, ``Post`` is handled by ``PostPolicy``, and methods
    named ``can_<action>`` answer whether the user may perform
    ``<action>`` on the resource.

    Attributes:
        user: The requesting user (None for anonymous requests).
        resource: The resource being accessed; an instance, a class,
            or a headless name.
        context: Opaque side-channel value (request metadata, etc.).
        param_key: Top-level payload key for permitted attributes.
            None means "derive from the resource type name".

    Example:
        >>> class PostPolicy(Policy):
        ...     def can_show(self) -> bool:
        ...         return self.resource.published or self.user is not None
        ...
        ...     def can_update(self) -> bool:
        ...         return self.resource.author_id == self.user.id
        ...
        ...     def permitted_attributes(self) -> list[str]:
        ...         return ["title", "body"]
        ...
        ...     def permitted_attributes_for_publish(self) -> list[str]:
        ...         return ["published_at"]
    """

    param_key: str | None = None

    # Nested scope class; subclasses that support policy scoping set this
    Scope: type[Scope] | None = None

    def __init__(self, user: Any, resource: T | None = None, context: Any = None) -> None:
        """
        Initialize a policy instance.

        Args:
            user: The requesting user.
            resource: The resource being accessed. Can be a class for
                type-level checks (e.g., "can user create posts?").
            context: Optional side-channel value; defaults to an empty dict.
        """
        self.user = user
        self.resource = resource
        self.context = {} if context is None else context

    @staticmethod
    def predicate_name(action: str, prefix: str = DEFAULT_PREDICATE_PREFIX) -> str:
        """
        Get the predicate method name for an action.

        Example:
            >>> Policy.predicate_name("show?")
            'can_show'
        """
        return f"{prefix}{normalize_action(action)}"

    def authorize(self, action: str, prefix: str = DEFAULT_PREDICATE_PREFIX) -> bool:
        """
        Evaluate the predicate for an action.

        Looks up the ``can_<action>`` method and calls it.

        Args:
            action: The action to check (e.g., "show", "update?").
            prefix: Predicate method prefix.

        Returns:
            True if authorized, False otherwise.

        Raises:
            NoSuchActionError: If the policy has no predicate for the action.
        """
        method_name = self.predicate_name(action, prefix)
        method = getattr(self, method_name, None)
        if method is None or not callable(method):
            raise NoSuchActionError(type(self).__name__, method_name)
        return bool(method())

    def can(self, action: str, prefix: str = DEFAULT_PREDICATE_PREFIX) -> bool:
        """
        Alias for authorize() for a more fluent API.

        Example:
            >>> if policy.can("destroy"):
            ...     post.delete()
        """
        return self.authorize(action, prefix)

    @property
    def scope(self) -> Any:
        """
        The user-filtered view of the resource.

        Resolves the nested ``Scope`` class against the resource. Policies
        may override this property instead of declaring a ``Scope``.

        Raises:
            NoSuchActionError: If the policy declares no scope.
        """
        if self.Scope is None:
            raise NoSuchActionError(type(self).__name__, "scope")
        return self.Scope(self.user, self.resource, self.context).resolve()

    def permitted_attributes(self) -> Iterable[Any]:
        """
        Payload fields the user may write, for any action.

        Defaults to nothing, so a policy that declares no fields permits none.
        """
        return []

    def permitted_attributes_for(
        self,
        action: str,
        method: str = DEFAULT_PERMITTED_ATTRIBUTES_METHOD,
    ) -> list[Any]:
        """
        Payload fields the user may write for a specific action.

        Uses ``permitted_attributes_for_<action>`` when the policy implements
        it, otherwise the generic ``permitted_attributes``. Either may be a
        method or a plain list attribute.

        Raises:
            NoSuchActionError: If neither member exists.
        """
        specific = getattr(self, f"{method}_for_{normalize_action(action)}", None)
        if specific is not None:
            return list(_evaluate(specific))

        generic = getattr(self, method, None)
        if generic is None:
            raise NoSuchActionError(type(self).__name__, method)
        return list(_evaluate(generic))

    @classmethod
    def get_available_actions(cls, prefix: str = DEFAULT_PREDICATE_PREFIX) -> list[str]:
        """
        Get all actions defined by this policy.

        Scans the class for methods matching the ``can_<action>`` pattern.

        Example:
            >>> class MyPolicy(Policy):
            ...     def can_show(self): return True
            ...     def can_update(self): return False
            >>> MyPolicy.get_available_actions()
            ['show', 'update']
        """
        actions = []
        for name in dir(cls):
            if name.startswith(prefix) and callable(getattr(cls, name)):
                actions.append(name[len(prefix):])
        return sorted(actions)


class PolicyWithScope(Policy[T]):
    """
    Policy class that includes a default Scope inner class.

    Example:
        >>> class PostPolicy(PolicyWithScope[Post]):
        ...     def can_index(self) -> bool:
        ...         return True
        ...
        ...     class Scope(Scope[Post]):
        ...         def resolve(self) -> list[Post]:
        ...             return [p for p in self.scope if p.author_id == self.user.id]
        >>>
        >>> visible = PostPolicy(user, all_posts).scope
    """

    # Nested Scope class - subclasses should override
    class Scope(Scope[T]):
        """Default scope that returns empty list."""
        pass


def _evaluate(member: Callable[[], Iterable[Any]] | Iterable[Any]) -> Iterable[Any]:
    """Call a bound method member, or return a plain attribute as-is."""
    if callable(member):
        return member()
    return member
