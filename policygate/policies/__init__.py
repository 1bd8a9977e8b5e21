"""
Policy system for policygate.

This module provides the Pundit-style policy pattern. Policies are
classes bound to (user, resource, context) that answer whether the user
may perform an action, which part of a collection the user may see, and
which payload fields the user may write.

Quick Start:
    >>> from policygate.policies import Policy, PolicyRegistry
    >>>
    >>> registry = PolicyRegistry()
    >>>
    >>> @registry.policy()
    ... class PostPolicy(Policy):
    ...     def can_show(self) -> bool:
    ...         return True
    ...
    ...     def can_update(self) -> bool:
    ...         return self.resource.author_id == self.user.id
    >>>
    >>> policy = registry.lookup(post)(user, post)
    >>> if policy.can("update"):
    ...     post.save()
"""

from policygate.policies.base import (
    Policy,
    PolicyWithScope,
    Scope,
    normalize_action,
)
from policygate.policies.builtin import (
    AllowAllPolicy,
    ApplicationPolicy,
    DenyAllPolicy,
)
from policygate.policies.registry import (
    PolicyRegistry,
    get_global_registry,
    reset_global_registry,
)

__all__ = [
    # Base classes
    "Policy",
    "PolicyWithScope",
    "Scope",
    "normalize_action",
    # Registry
    "PolicyRegistry",
    "get_global_registry",
    "reset_global_registry",
    # Built-in policies
    "ApplicationPolicy",
    "DenyAllPolicy",
    "AllowAllPolicy",
]
