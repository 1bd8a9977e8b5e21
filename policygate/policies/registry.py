"""
Policy registry for policygate.

This module provides the PolicyRegistry class for registering and looking
up policy classes. Policies are registered at startup, either explicitly
against a target type or under their own class name, and are then found
for a target by naming convention ("Post" -> "PostPolicy").
"""

from __future__ import annotations

import inspect
import logging
import threading
from types import ModuleType
from typing import Any

from policygate.exceptions import PolicyResolutionError
from policygate.naming import DEFAULT_POLICY_SUFFIX, default_policy_name
from policygate.policies.base import Policy

logger = logging.getLogger(__name__)


class PolicyRegistry:
    """
    Registry for policy classes.

    The PolicyRegistry maps policy names and target types to policy
    classes, so the authorization layer can find the right policy for
    any target without runtime string-to-class resolution.

    Features:
        - Decorator-based registration (@registry.policy())
        - Explicit target binding (@registry.policy(Post))
        - Convention lookup by type name ("Post" -> "PostPolicy")
        - Module scanning for startup registration
        - Thread-safe operations

    Example:
        >>> registry = PolicyRegistry()
        >>>
        >>> @registry.policy()
        ... class PostPolicy(Policy):
        ...     def can_show(self) -> bool:
        ...         return True
        >>>
        >>> registry.lookup(Post())
        <class 'PostPolicy'>

    Thread Safety:
        All operations are thread-safe via internal locking.
    """

    def __init__(self, default_policy: type[Policy] | None = None) -> None:
        """
        Initialize the registry.

        Args:
            default_policy: Optional policy class to use when no policy
                matches a target. If None, lookups for unknown targets
                raise PolicyResolutionError.
        """
        self._policies: dict[str, type[Policy]] = {}
        self._targets: dict[type, type[Policy]] = {}
        self._default_policy = default_policy
        self._lock = threading.RLock()

    def policy(self, target: type | None = None, name: str | None = None) -> Any:
        """
        Decorator for registering a policy class.

        Args:
            target: Optional target type this policy handles, regardless
                of naming.
            name: Optional name to register under (defaults to the
                class name).

        Example:
            >>> @registry.policy(Article)
            ... class EditorialPolicy(Policy):
            ...     def can_update(self) -> bool:
            ...         return self.user.is_editor
        """
        def decorator(policy_class: type[Policy]) -> type[Policy]:
            self.register(policy_class, target=target, name=name)
            return policy_class
        return decorator

    def register(
        self,
        policy_class: type[Policy],
        target: type | None = None,
        name: str | None = None,
    ) -> None:
        """
        Register a policy class.

        Args:
            policy_class: The policy class to register.
            target: Optional target type bound to this policy.
            name: Name to register under; defaults to the class name.

        Raises:
            TypeError: If policy_class is not a Policy subclass.
        """
        if not (isinstance(policy_class, type) and issubclass(policy_class, Policy)):
            raise TypeError(f"{policy_class!r} is not a Policy subclass")

        name = name or policy_class.__name__
        with self._lock:
            if name in self._policies and self._policies[name] is not policy_class:
                existing = self._policies[name].__name__
                logger.warning(
                    f"Overwriting policy '{name}': {existing} -> {policy_class.__name__}"
                )
            self._policies[name] = policy_class

            if target is not None:
                self._targets[target] = policy_class
                logger.debug(
                    f"Registered policy '{policy_class.__name__}' for target '{target.__name__}'"
                )
            else:
                logger.debug(f"Registered policy '{policy_class.__name__}' as '{name}'")

    def register_by_convention(self, policy_class: type[Policy]) -> None:
        """
        Register a policy class under its own class name.

        ``PostPolicy`` then handles every target whose type name is
        ``Post``.
        """
        self.register(policy_class)

    def register_module(self, module: ModuleType) -> list[str]:
        """
        Register every Policy subclass defined in a module.

        Intended to be called once at startup, e.g. on the application's
        ``policies`` module.

        Returns:
            Names of the registered policies.
        """
        registered = []
        for _, member in inspect.getmembers(module, inspect.isclass):
            if (
                issubclass(member, Policy)
                and member.__module__ == module.__name__
            ):
                self.register_by_convention(member)
                registered.append(member.__name__)
        logger.debug(f"Registered {len(registered)} policies from '{module.__name__}'")
        return registered

    def get_policy(self, name: str) -> type[Policy]:
        """
        Get a policy class by registered name.

        Raises:
            PolicyResolutionError: If no policy is registered under the
                name and no default is set.
        """
        with self._lock:
            if name in self._policies:
                return self._policies[name]

            if self._default_policy is not None:
                logger.debug(
                    f"No policy named '{name}', using default: "
                    f"{self._default_policy.__name__}"
                )
                return self._default_policy

            raise PolicyResolutionError(
                policy_name=name,
                available_policies=sorted(self._policies),
            )

    def lookup(self, target: Any, suffix: str = DEFAULT_POLICY_SUFFIX) -> type[Policy]:
        """
        Find the policy class for a target.

        Resolution order:
            1. a ``policy_class`` attribute on the target;
            2. a policy registered for the target's type;
            3. a policy registered under the conventional name;
            4. the default policy, if any.

        Raises:
            PolicyResolutionError: If nothing matches.
        """
        pinned = getattr(target, "policy_class", None)
        if isinstance(pinned, type) and issubclass(pinned, Policy):
            return pinned

        name = default_policy_name(target, suffix)
        with self._lock:
            if not isinstance(target, str):
                target_type = target if isinstance(target, type) else type(target)
                if target_type in self._targets:
                    return self._targets[target_type]

            if name in self._policies:
                return self._policies[name]

            if self._default_policy is not None:
                logger.debug(
                    f"No policy '{name}', using default: {self._default_policy.__name__}"
                )
                return self._default_policy

            raise PolicyResolutionError(
                target=target,
                policy_name=name,
                available_policies=sorted(self._policies),
            )

    def has_policy(self, name: str) -> bool:
        """Check if a policy is registered under a name."""
        with self._lock:
            return name in self._policies

    def list_policies(self) -> dict[str, str]:
        """
        List all registered policies.

        Returns:
            Dictionary mapping registered names to policy class names.
        """
        with self._lock:
            return {name: policy.__name__ for name, policy in self._policies.items()}

    def unregister(self, name: str) -> bool:
        """
        Unregister a policy and any target bindings to it.

        Returns:
            True if a policy was unregistered, False if none was registered.
        """
        with self._lock:
            policy_class = self._policies.pop(name, None)
            if policy_class is None:
                return False
            for target in [t for t, p in self._targets.items() if p is policy_class]:
                del self._targets[target]
            logger.debug(f"Unregistered policy '{name}'")
            return True

    def clear(self) -> None:
        """
        Clear all registered policies.

        Useful for testing or reconfiguration.
        """
        with self._lock:
            self._policies.clear()
            self._targets.clear()
            logger.debug("Cleared all registered policies")

    def set_default_policy(self, policy_class: type[Policy] | None) -> None:
        """Set or clear the default policy."""
        with self._lock:
            self._default_policy = policy_class
            if policy_class:
                logger.debug(f"Set default policy to '{policy_class.__name__}'")
            else:
                logger.debug("Cleared default policy")


# Global registry instance for convenience
_global_registry: PolicyRegistry | None = None
_global_registry_lock = threading.Lock()


def get_global_registry() -> PolicyRegistry:
    """
    Get the global policy registry instance.

    Creates one if it doesn't exist. Gates built without an explicit
    registry use this one.
    """
    global _global_registry
    if _global_registry is not None:
        return _global_registry
    with _global_registry_lock:
        # Double-check after acquiring lock
        if _global_registry is None:
            _global_registry = PolicyRegistry()
        return _global_registry


def reset_global_registry() -> None:
    """
    Reset the global registry.

    Primarily useful for testing.
    """
    global _global_registry
    with _global_registry_lock:
        if _global_registry is not None:
            _global_registry.clear()
        _global_registry = None
