"""
Decorators for policygate request handlers.

authorization_handler opens a RequestAuthorization for each call of the
decorated handler and verifies it when the handler returns.
verify_authorized and verify_policy_scoped only add the end-of-request
assertion to a handler that already receives a RequestAuthorization.

All decorators support both sync and async handlers. Verification runs
after the handler body completes (awaited, for async handlers); if the
handler raises, its exception propagates and nothing is verified.
"""

from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, ParamSpec, TypeVar

from policygate.core import RequestAuthorization
from policygate.types import UNSET

if TYPE_CHECKING:
    from policygate.core import Gate

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


def _handler_identity(func: Callable[..., Any]) -> str:
    return f"{func.__module__}.{func.__qualname__}"


def authorization_handler(
    gate: Gate,
    action: str | None = None,
    verify_authorized: bool | None = None,
    verify_policy_scoped: bool | None = None,
    request_param: str = "auth",
    params_param: str = "params",
    user_param: str = "user",
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """
    Decorator that runs a function as an authorized request handler.

    Each call gets a fresh RequestAuthorization, passed to the handler as
    the keyword argument named by ``request_param``. The payload is read
    from the ``params_param`` argument and the user from the ``user_param``
    argument, whether passed positionally or by keyword (the user falls
    back to the gate's current user); both are still passed through to
    the handler.

    Args:
        gate: The gate to open requests on.
        action: Action name; defaults to the function name.
        verify_authorized: Override the gate's config.verify_authorized.
        verify_policy_scoped: Override the gate's config.verify_policy_scoped.
        request_param: Keyword argument receiving the RequestAuthorization.
        params_param: Keyword argument holding the request payload.
        user_param: Keyword argument holding the user.

    Example:
        >>> @authorization_handler(gate, verify_policy_scoped=True)
        ... def index(auth: RequestAuthorization = None):
        ...     return auth.policy_scope(Post)
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        is_async = inspect.iscoroutinefunction(func)
        handler = _handler_identity(func)
        action_name = action or func.__name__
        signature = inspect.signature(func)

        def open_request(args: tuple[Any, ...], kwargs: dict[str, Any]) -> RequestAuthorization:
            # Positional payload and user count as well as keyword ones
            arguments = {**kwargs, **signature.bind_partial(*args, **kwargs).arguments}
            request = gate.request(
                action=action_name,
                handler=handler,
                params=arguments.get(params_param),
                user=arguments.get(user_param, UNSET),
            )
            kwargs[request_param] = request
            return request

        if is_async:
            @functools.wraps(func)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
                request = open_request(args, kwargs)
                result = await func(*args, **kwargs)
                gate.verify(request, verify_authorized, verify_policy_scoped)
                return result

            return async_wrapper  # type: ignore
        else:
            @functools.wraps(func)
            def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
                request = open_request(args, kwargs)
                result = func(*args, **kwargs)
                gate.verify(request, verify_authorized, verify_policy_scoped)
                return result

            return sync_wrapper  # type: ignore

    return decorator


def _find_request(
    func_name: str,
    request_param: str,
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
) -> RequestAuthorization:
    request = kwargs.get(request_param)
    if isinstance(request, RequestAuthorization):
        return request
    for arg in args:
        if isinstance(arg, RequestAuthorization):
            return arg
        # Handler methods on an object carrying the request
        attached = getattr(arg, request_param, None)
        if isinstance(attached, RequestAuthorization):
            return attached
    raise TypeError(
        f"{func_name}() was called without a RequestAuthorization "
        f"(expected keyword argument '{request_param}')"
    )


def _verifying(
    check: Callable[[RequestAuthorization], None],
    request_param: str,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        is_async = inspect.iscoroutinefunction(func)

        if is_async:
            @functools.wraps(func)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
                request = _find_request(func.__name__, request_param, args, kwargs)
                result = await func(*args, **kwargs)
                check(request)
                return result

            return async_wrapper  # type: ignore
        else:
            @functools.wraps(func)
            def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
                request = _find_request(func.__name__, request_param, args, kwargs)
                result = func(*args, **kwargs)
                check(request)
                return result

            return sync_wrapper  # type: ignore

    return decorator


def verify_authorized(request_param: str = "auth") -> Callable[[Callable[P, T]], Callable[P, T]]:
    """
    Decorator asserting that a handler authorized (or skipped authorization).

    The RequestAuthorization is taken from the ``request_param`` keyword
    argument, from a positional argument, or from a ``request_param``
    attribute of a positional argument (e.g. ``self.auth`` on a controller).

    Raises:
        AuthorizationNotPerformedError: After a handler that did neither.
        TypeError: If no RequestAuthorization can be found.

    Example:
        >>> @verify_authorized()
        ... def destroy(post, auth):
        ...     auth.authorize(post)
        ...     post.delete()
    """
    return _verifying(RequestAuthorization.verify_authorized, request_param)


def verify_policy_scoped(request_param: str = "auth") -> Callable[[Callable[P, T]], Callable[P, T]]:
    """
    Decorator asserting that a handler fetched (or skipped) a policy scope.

    Raises:
        ScopingNotPerformedError: After a handler that did neither.
        TypeError: If no RequestAuthorization can be found.
    """
    return _verifying(RequestAuthorization.verify_policy_scoped, request_param)
