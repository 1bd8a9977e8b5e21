"""
Custom exceptions for policygate.

This module defines the exception hierarchy for the library. Every error
is raised to the immediate caller and carries enough detail to tell a
configuration mistake (missing policy, missing predicate) apart from an
expected denial and from a forgotten authorization check.
"""

from __future__ import annotations

from typing import Any


def _describe(target: Any) -> str:
    """Short, log-friendly description of a target."""
    if isinstance(target, type):
        return target.__name__
    if isinstance(target, str):
        return target
    return f"{type(target).__name__} instance"


class PolicygateError(Exception):
    """
    Base exception for all policygate errors.

    Attributes:
        message: Human-readable error description.
        details: Additional context about the error.

    Example:
        >>> try:
        ...     request.authorize(post)
        ... except PolicygateError as e:
        ...     logger.error(f"policygate error: {e}")
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class NotAuthorizedError(PolicygateError):
    """
    Raised when a policy predicate answers no.

    This is the expected, user-facing outcome of a denied request. Hosts
    usually map it to an HTTP 403.

    Attributes:
        action: The action whose predicate was evaluated (e.g. "update").
        target: The object or class that was being authorized.
        policy: The policy instance that made the decision.

    Example:
        >>> raise NotAuthorizedError(action="update", target=post, policy=policy)
    """

    def __init__(
        self,
        action: str,
        target: Any = None,
        policy: Any = None,
        reason: str | None = None,
    ) -> None:
        self.action = action
        self.target = target
        self.policy = policy
        self.reason = reason or "Policy denied the action"

        policy_name = type(policy).__name__ if policy is not None else None
        message = f"Not allowed to {action} {_describe(target)}"
        if policy_name:
            message += f" (decided by {policy_name})"

        details = {
            "action": action,
            "target": _describe(target),
            "policy": policy_name,
            "reason": self.reason,
        }
        super().__init__(message, details)


class PolicyResolutionError(PolicygateError):
    """
    Raised when no policy class can be found for a target.

    This indicates a programming or configuration error (the policy was
    never defined or never registered) and is never retried.

    Attributes:
        target: The target for which no policy was found.
        policy_name: The conventional policy name that was looked up.
        available_policies: Registered policy names (for debugging).

    Example:
        >>> raise PolicyResolutionError(
        ...     target=comment,
        ...     policy_name="CommentPolicy",
        ...     available_policies=["PostPolicy"],
        ... )
    """

    def __init__(
        self,
        target: Any = None,
        policy_name: str | None = None,
        available_policies: list[str] | None = None,
        reason: str | None = None,
    ) -> None:
        self.target = target
        self.policy_name = policy_name
        self.available_policies = available_policies or []

        if policy_name:
            message = f"Unable to find policy '{policy_name}' for {_describe(target)}"
        else:
            message = f"Unable to find policy for {_describe(target)}"
        if reason:
            message += f": {reason}"
        if self.available_policies:
            message += f". Available policies: {', '.join(self.available_policies)}"

        details = {
            "target": _describe(target),
            "policy_name": policy_name,
            "available_policies": self.available_policies,
        }
        super().__init__(message, details)


class NoSuchActionError(PolicygateError):
    """
    Raised when a policy does not implement the requested method.

    Attributes:
        policy_name: Name of the policy class.
        method_name: The predicate or permitted-attributes method looked up.

    Example:
        >>> raise NoSuchActionError(policy_name="PostPolicy", method_name="can_publish")
    """

    def __init__(self, policy_name: str, method_name: str) -> None:
        self.policy_name = policy_name
        self.method_name = method_name

        message = f"'{policy_name}' does not implement '{method_name}'"
        details = {
            "policy_name": policy_name,
            "method_name": method_name,
        }
        super().__init__(message, details)


class VerificationError(PolicygateError):
    """
    Base class for failed end-of-request verification.

    A verification error means a handler finished without authorizing
    (or scoping) and without explicitly skipping it.

    Attributes:
        handler: Identity of the request handler, for diagnostics.
    """

    check_name = "verification"

    def __init__(self, handler: str | None = None) -> None:
        self.handler = handler or "unknown handler"

        message = f"{self.check_name.capitalize()} was not performed in {self.handler}"
        details = {"handler": self.handler, "check": self.check_name}
        super().__init__(message, details)


class AuthorizationNotPerformedError(VerificationError):
    """Raised by verify_authorized() when no decision was made or skipped."""

    check_name = "authorization"


class ScopingNotPerformedError(VerificationError):
    """Raised by verify_policy_scoped() when no scope was fetched or skipped."""

    check_name = "policy scoping"


class ParameterMissingError(PolicygateError):
    """
    Raised when a required top-level payload key is absent or empty.

    Attributes:
        param_key: The key that was required.

    Example:
        >>> raise ParameterMissingError("post")
    """

    def __init__(self, param_key: str) -> None:
        self.param_key = param_key

        message = f"param is missing or the value is empty: {param_key}"
        super().__init__(message, {"param_key": param_key})


class ConfigurationError(PolicygateError):
    """
    Raised when a gate is configured with invalid values.

    Attributes:
        config_key: The configuration key that has an issue.
        expected: What was expected for this configuration.
        received: What was actually provided.

    Example:
        >>> raise ConfigurationError(
        ...     config_key="predicate_prefix",
        ...     expected="a valid identifier prefix",
        ...     received="can-",
        ... )
    """

    def __init__(
        self,
        config_key: str,
        expected: str | None = None,
        received: Any = None,
    ) -> None:
        self.config_key = config_key
        self.expected = expected
        self.received = received

        message = f"Configuration error for '{config_key}'"
        if expected:
            message += f": expected {expected}"
        if received is not None:
            message += f", got {received!r}"

        details = {
            "config_key": config_key,
            "expected": expected,
            "received": str(received) if received is not None else None,
        }
        super().__init__(message, details)
