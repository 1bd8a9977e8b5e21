"""
policygate: per-request, policy-based authorization.

policygate finds the policy for a target by naming convention, asks it
whether the current user may perform an action, narrows collections to what
the user may see, filters incoming payloads to the fields the user may
write, and verifies at the end of every request that authorization was not
silently skipped.

Basic Usage:
    >>> from policygate import Gate, Policy
    >>>
    >>> gate = Gate()
    >>>
    >>> @gate.policy()
    ... class PostPolicy(Policy):
    ...     def can_update(self) -> bool:
    ...         return self.user is not None and self.resource.author_id == self.user.id
    ...
    ...     def permitted_attributes(self) -> list[str]:
    ...         return ["title", "body"]
    >>>
    >>> @gate.handler()
    ... def update(post_id, params=None, auth=None):
    ...     post = auth.authorize(load_post(post_id))
    ...     post.update(**auth.permitted_attributes(post))
    ...     return post
    >>>
    >>> with gate.user_context(current_user):
    ...     update(1, params={"post": {"title": "Hello", "author_id": 99}})
"""

__version__ = "0.1.0"

from policygate.config import GateConfig
from policygate.core import (
    Gate,
    RequestAuthorization,
    get_current_user,
)
from policygate.decorators import (
    authorization_handler,
    verify_authorized,
    verify_policy_scoped,
)
from policygate.exceptions import (
    AuthorizationNotPerformedError,
    ConfigurationError,
    NoSuchActionError,
    NotAuthorizedError,
    ParameterMissingError,
    PolicygateError,
    PolicyResolutionError,
    ScopingNotPerformedError,
    VerificationError,
)
from policygate.naming import (
    default_param_key,
    default_policy_name,
)
from policygate.parameters import Parameters
from policygate.policies import (
    AllowAllPolicy,
    ApplicationPolicy,
    DenyAllPolicy,
    Policy,
    PolicyRegistry,
    PolicyWithScope,
    Scope,
    get_global_registry,
    reset_global_registry,
)
from policygate.types import UNSET, AuthorizationOptions
from policygate.verification import VerificationState

__all__ = [
    # Version
    "__version__",
    # Main classes
    "Gate",
    "RequestAuthorization",
    "GateConfig",
    "VerificationState",
    "AuthorizationOptions",
    "UNSET",
    "Parameters",
    # Policies
    "Policy",
    "PolicyWithScope",
    "Scope",
    "ApplicationPolicy",
    "DenyAllPolicy",
    "AllowAllPolicy",
    "PolicyRegistry",
    "get_global_registry",
    "reset_global_registry",
    # Naming
    "default_policy_name",
    "default_param_key",
    # Exceptions
    "PolicygateError",
    "NotAuthorizedError",
    "PolicyResolutionError",
    "NoSuchActionError",
    "VerificationError",
    "AuthorizationNotPerformedError",
    "ScopingNotPerformedError",
    "ParameterMissingError",
    "ConfigurationError",
    # Decorators
    "authorization_handler",
    "verify_authorized",
    "verify_policy_scoped",
    # Context helpers
    "get_current_user",
]
