"""
Per-request verification state for policygate.

Every request owns one VerificationState. Authorizing (or explicitly
skipping authorization) and fetching a policy scope (or explicitly
skipping it) flip the corresponding flag; the end-of-request assertions
then fail loudly if a handler did neither.
"""

from __future__ import annotations

import logging

from policygate.exceptions import AuthorizationNotPerformedError, ScopingNotPerformedError

logger = logging.getLogger(__name__)


class VerificationState:
    """
    Two monotonic flags recording what a request has checked.

    Flags only ever go from False to True and are read-only from the
    outside. There is no reset: a new request gets a new state.

    Attributes:
        handler: Identity of the request handler, used in error messages.
        authorized_performed: An authorization decision was made or skipped.
        scoped_performed: A policy scope was fetched or skipped.
    """

    def __init__(self, handler: str | None = None) -> None:
        self.handler = handler
        self._authorized_performed = False
        self._scoped_performed = False

    def __repr__(self) -> str:
        return (
            f"VerificationState(handler={self.handler!r}, "
            f"authorized_performed={self._authorized_performed}, "
            f"scoped_performed={self._scoped_performed})"
        )

    @property
    def authorized_performed(self) -> bool:
        return self._authorized_performed

    @property
    def scoped_performed(self) -> bool:
        return self._scoped_performed

    def mark_authorized(self) -> None:
        self._authorized_performed = True

    def mark_scoped(self) -> None:
        self._scoped_performed = True

    def verify_authorized(self) -> None:
        """
        Assert that authorization was performed.

        Raises:
            AuthorizationNotPerformedError: If neither authorize nor
                skip_authorization ran during the request.
        """
        if not self.authorized_performed:
            logger.error(f"Authorization was not performed in {self.handler or 'unknown handler'}")
            raise AuthorizationNotPerformedError(self.handler)

    def verify_policy_scoped(self) -> None:
        """
        Assert that policy scoping was performed.

        Raises:
            ScopingNotPerformedError: If neither policy_scope nor
                skip_policy_scope ran during the request.
        """
        if not self.scoped_performed:
            logger.error(f"Policy scoping was not performed in {self.handler or 'unknown handler'}")
            raise ScopingNotPerformedError(self.handler)
