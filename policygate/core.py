"""
Core policygate classes and authorization logic.

This module provides the two objects a host application works with:

    Gate                  application-wide: policy registry, configuration
                          and the current-user lookup. Created once.
    RequestAuthorization  per request: resolves policies, makes decisions,
                          fetches scopes, filters payloads, and records
                          what was checked so the request can be verified
                          at the end.
"""

from __future__ import annotations

import contextvars
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, ParamSpec, TypeVar

from policygate.config import GateConfig
from policygate.exceptions import NotAuthorizedError, ParameterMissingError
from policygate.naming import default_param_key
from policygate.parameters import Parameters
from policygate.policies.base import Policy, normalize_action
from policygate.policies.registry import PolicyRegistry, get_global_registry
from policygate.types import UNSET, AuthorizationOptions
from policygate.verification import VerificationState

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

# Context variable for the current user
_current_user: contextvars.ContextVar[Any] = contextvars.ContextVar(
    "policygate_user", default=None
)


def get_current_user() -> Any:
    """Get the current user from context."""
    return _current_user.get()


class Gate:
    """
    Main entry point for policygate.

    A Gate holds what is shared by all requests: the policy registry, the
    configuration, and the way to find the current user. Each request then
    opens its own RequestAuthorization.

    Example:
        >>> gate = Gate()
        >>>
        >>> @gate.policy()
        ... class PostPolicy(Policy):
        ...     def can_update(self) -> bool:
        ...         return self.resource.author_id == self.user.id
        ...
        ...     def permitted_attributes(self) -> list[str]:
        ...         return ["title", "body"]
        >>>
        >>> with gate.user_context(user):
        ...     with gate.handle(action="update", params=payload) as auth:
        ...         post = auth.authorize(post)
        ...         post.update(**auth.permitted_attributes(post))
    """

    def __init__(
        self,
        registry: PolicyRegistry | None = None,
        config: GateConfig | None = None,
        current_user: Callable[[], Any] | None = None,
    ) -> None:
        """
        Initialize a Gate.

        Args:
            registry: Policy registry to resolve policies from. Defaults to
                the global registry.
            config: Gate configuration. Defaults to GateConfig.default().
            current_user: Callable returning the current user. Defaults to
                the context variable set by user_context().
        """
        self._registry = registry if registry is not None else get_global_registry()
        self._config = config or GateConfig.default()
        self._current_user = current_user or get_current_user

    @property
    def registry(self) -> PolicyRegistry:
        return self._registry

    @property
    def config(self) -> GateConfig:
        return self._config

    # ==================== Policy Registration ====================

    def policy(self, target: type | None = None, name: str | None = None) -> Any:
        """
        Decorator to register a policy class with this gate's registry.

        Example:
            >>> @gate.policy()
            ... class PostPolicy(Policy):
            ...     def can_show(self) -> bool:
            ...         return True
        """
        return self._registry.policy(target=target, name=name)

    def register_policy(
        self,
        policy_class: type[Policy],
        target: type | None = None,
        name: str | None = None,
    ) -> None:
        """Register a policy class programmatically."""
        self._registry.register(policy_class, target=target, name=name)

    # ==================== Requests ====================

    def resolve_user(self) -> Any:
        """Look up the current user."""
        return self._current_user()

    def request(
        self,
        action: str | None = None,
        handler: str | None = None,
        params: Any = None,
        user: Any = UNSET,
    ) -> RequestAuthorization:
        """
        Open authorization for one request.

        Args:
            action: Name of the action being handled (e.g. "update").
            handler: Identity of the handler, for diagnostics.
            params: Request payload (mapping, Parameters or pydantic model).
            user: Fixed user for this request. Defaults to the current user
                lookup, evaluated on each call.
        """
        return RequestAuthorization(self, action=action, handler=handler, params=params, user=user)

    @contextmanager
    def handle(
        self,
        action: str | None = None,
        handler: str | None = None,
        params: Any = None,
        user: Any = UNSET,
        verify_authorized: bool | None = None,
        verify_policy_scoped: bool | None = None,
    ) -> Iterator[RequestAuthorization]:
        """
        Context manager that opens a request and verifies it on exit.

        Verification runs only when the body completes; an exception raised
        inside the body propagates unchanged.

        Args:
            verify_authorized: Override config.verify_authorized.
            verify_policy_scoped: Override config.verify_policy_scoped.

        Example:
            >>> with gate.handle(action="show", handler="posts.show") as auth:
            ...     post = auth.authorize(load_post(post_id))
        """
        request = self.request(action=action, handler=handler, params=params, user=user)
        yield request
        self.verify(request, verify_authorized, verify_policy_scoped)

    def verify(
        self,
        request: RequestAuthorization,
        verify_authorized: bool | None = None,
        verify_policy_scoped: bool | None = None,
    ) -> None:
        """Run the end-of-request assertions the configuration asks for."""
        if verify_authorized is None:
            verify_authorized = self._config.verify_authorized
        if verify_policy_scoped is None:
            verify_policy_scoped = self._config.verify_policy_scoped

        if verify_authorized:
            request.verify_authorized()
        if verify_policy_scoped:
            request.verify_policy_scoped()

    def handler(
        self,
        action: str | None = None,
        verify_authorized: bool | None = None,
        verify_policy_scoped: bool | None = None,
        request_param: str = "auth",
        params_param: str = "params",
        user_param: str = "user",
    ) -> Callable[[Callable[P, T]], Callable[P, T]]:
        """
        Decorator that runs a function as an authorized request handler.

        See policygate.decorators.authorization_handler.

        Example:
            >>> @gate.handler()
            ... def update(post_id: int, params: dict | None = None, auth: RequestAuthorization = None):
            ...     post = auth.authorize(load_post(post_id))
            ...     post.update(**auth.permitted_attributes(post))
        """
        from policygate.decorators import authorization_handler

        return authorization_handler(
            self,
            action=action,
            verify_authorized=verify_authorized,
            verify_policy_scoped=verify_policy_scoped,
            request_param=request_param,
            params_param=params_param,
            user_param=user_param,
        )

    # ==================== Context Management ====================

    @contextmanager
    def user_context(self, user: Any) -> Iterator[Any]:
        """
        Context manager to set the current user.

        Only affects gates using the default current-user lookup.

        Example:
            >>> with gate.user_context(user):
            ...     handle_request()
        """
        token = _current_user.set(user)
        try:
            yield user
        finally:
            _current_user.reset(token)


class RequestAuthorization:
    """
    Authorization for a single request.

    Resolves policies, evaluates decisions, fetches scopes and filters
    payloads, recording in its VerificationState what has been checked.
    One instance belongs to exactly one request; never share it between
    requests.

    Attributes:
        action_name: The action being handled; default for every ``action``.
        handler: Identity of the request handler.
        params: The request payload.
        verification: The request's verification flags.
    """

    def __init__(
        self,
        gate: Gate,
        action: str | None = None,
        handler: str | None = None,
        params: Any = None,
        user: Any = UNSET,
    ) -> None:
        self._gate = gate
        self._user = user
        self.action_name = action
        self.handler = handler
        self.params = Parameters.wrap(params)
        self.verification = VerificationState(handler)

    def __repr__(self) -> str:
        return (
            f"RequestAuthorization(action={self.action_name!r}, handler={self.handler!r}, "
            f"verification={self.verification!r})"
        )

    @property
    def user(self) -> Any:
        """The request's user, or the gate's current user."""
        if self._user is not UNSET:
            return self._user
        return self._gate.resolve_user()

    @property
    def authorized_performed(self) -> bool:
        return self.verification.authorized_performed

    @property
    def scoped_performed(self) -> bool:
        return self.verification.scoped_performed

    # ==================== Policy Resolution ====================

    def policy(
        self,
        target: Any,
        *,
        user: Any = UNSET,
        policy: type[Policy] | None = None,
        context: Any = None,
    ) -> Policy:
        """
        Resolve and build the policy for a target.

        Args:
            target: Object, class or headless name to find the policy for.
            user: Actor to bind; defaults to the current user. None is a
                legal (anonymous) actor.
            policy: Explicit policy class, bypassing lookup.
            context: Value handed to the policy; defaults to an empty dict.

        Returns:
            A new policy instance.

        Raises:
            PolicyResolutionError: If no policy can be found.
        """
        return self._build_policy(
            target, AuthorizationOptions(user=user, policy=policy, context=context)
        )

    def _build_policy(self, target: Any, options: AuthorizationOptions) -> Policy:
        actor = options.user if options.has_user else self.user
        policy_class = options.policy or self._gate.registry.lookup(
            target, self._gate.config.policy_suffix
        )
        logger.debug(f"Resolved policy {policy_class.__name__} for {target!r}")
        return policy_class(actor, target, options.resolved_context())

    def _action(self, action: str | None) -> str:
        name = action if action is not None else self.action_name
        if not name:
            raise ValueError(
                f"No action given and no current action set for {self.handler or 'this request'}"
            )
        return normalize_action(name)

    def _decide(self, target: Any, options: AuthorizationOptions) -> Policy:
        """Evaluate the action predicate; return the policy if it allowed."""
        action = self._action(options.action)
        policy = self._build_policy(target, options.without_action())

        if not policy.authorize(action, self._gate.config.predicate_prefix):
            logger.info(
                f"{type(policy).__name__} denied '{action}' in {self.handler or 'request'}"
            )
            raise NotAuthorizedError(action=action, target=target, policy=policy)

        logger.debug(f"{type(policy).__name__} allowed '{action}'")
        return policy

    # ==================== Decisions ====================

    def authorize(
        self,
        target: T,
        *,
        action: str | None = None,
        user: Any = UNSET,
        policy: type[Policy] | None = None,
        context: Any = None,
    ) -> T:
        """
        Authorize an action on a target.

        Args:
            target: The object (or class, for collection-level actions).
            action: Action name, with or without a trailing "?". Defaults
                to the action being handled.
            user: Actor override.
            policy: Explicit policy class.
            context: Value handed to the policy.

        Returns:
            The target, unchanged.

        Raises:
            NotAuthorizedError: If the policy denies the action.
            NoSuchActionError: If the policy has no predicate for it.
            PolicyResolutionError: If no policy can be found.

        Example:
            >>> post = auth.authorize(post, action="update")
        """
        options = AuthorizationOptions(user=user, policy=policy, context=context, action=action)
        self._decide(target, options)
        self.verification.mark_authorized()
        return target

    # ==================== Scopes ====================

    def policy_scope(
        self,
        target: Any,
        *,
        user: Any = UNSET,
        policy: type[Policy] | None = None,
        context: Any = None,
    ) -> Any:
        """
        Get the user-filtered scope of a collection.

        No decision is made; the scope itself is the filter.

        Example:
            >>> posts = auth.policy_scope(Post)
        """
        resolved = self._build_policy(
            target, AuthorizationOptions(user=user, policy=policy, context=context)
        )
        scope = resolved.scope
        self.verification.mark_scoped()
        return scope

    def authorized_scope(
        self,
        target: Any,
        *,
        action: str | None = None,
        user: Any = UNSET,
        policy: type[Policy] | None = None,
        context: Any = None,
    ) -> Any:
        """
        Authorize an action on a collection, then return its scope.

        Both verification flags are set only once the decision passed and
        the scope was fetched.

        Raises:
            NotAuthorizedError: If the policy denies the action.
        """
        options = AuthorizationOptions(user=user, policy=policy, context=context, action=action)
        resolved = self._decide(target, options)
        scope = resolved.scope
        self.verification.mark_authorized()
        self.verification.mark_scoped()
        return scope

    # ==================== Permitted Attributes ====================

    def permitted_attributes(
        self,
        target: Any,
        *,
        action: str | None = None,
        user: Any = UNSET,
        policy: type[Policy] | None = None,
        context: Any = None,
    ) -> dict[str, Any]:
        """
        Filter the request payload down to the fields the policy permits.

        Uses the policy's ``permitted_attributes_for_<action>`` when it has
        one, otherwise ``permitted_attributes``. The payload is read from the
        policy's ``param_key``, or from the underscored target type name.

        Returns:
            Only the permitted fields present in the payload.

        Raises:
            ParameterMissingError: If the payload has no value under the key.

        Example:
            >>> attributes = auth.permitted_attributes(post, action="create")
        """
        action_name = self._action(action)
        resolved = self._build_policy(
            target, AuthorizationOptions(user=user, policy=policy, context=context)
        )
        fields = resolved.permitted_attributes_for(
            action_name, self._gate.config.permitted_attributes_method
        )
        param_key = resolved.param_key or default_param_key(target)

        payload = self.params.require(param_key)
        if not isinstance(payload, Parameters):
            # A scalar under the key holds no attributes
            raise ParameterMissingError(param_key)
        return payload.permit(*fields)

    # ==================== Verification ====================

    def skip_authorization(self) -> None:
        """Mark this request as intentionally not needing authorization."""
        self.verification.mark_authorized()

    def skip_policy_scope(self) -> None:
        """Mark this request as intentionally not needing a policy scope."""
        self.verification.mark_scoped()

    def verify_authorized(self) -> None:
        """
        Raises:
            AuthorizationNotPerformedError: If nothing was authorized or skipped.
        """
        self.verification.verify_authorized()

    def verify_policy_scoped(self) -> None:
        """
        Raises:
            ScopingNotPerformedError: If no scope was fetched or skipped.
        """
        self.verification.verify_policy_scoped()
