"""
Gate configuration for policygate.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any

from policygate.exceptions import ConfigurationError


@dataclass(frozen=True)
class GateConfig:
    """
    Configuration for a Gate.

    Attributes:
        policy_suffix: Appended to a target's type name to form the
            conventional policy class name ("Post" -> "PostPolicy").
        predicate_prefix: Prefix of policy predicate methods; action
            "update" is answered by ``can_update``.
        permitted_attributes_method: Name of the generic permitted
            attributes method; action-specific variants are named
            ``<method>_for_<action>``.
        verify_authorized: If True, handlers opened through the gate
            assert at the end that authorization was performed.
        verify_policy_scoped: Same for policy scoping.
    """
    policy_suffix: str = "Policy"
    predicate_prefix: str = "can_"
    permitted_attributes_method: str = "permitted_attributes"
    verify_authorized: bool = True
    verify_policy_scoped: bool = False

    def __post_init__(self) -> None:
        """Validate naming options are usable as identifiers."""
        if not self.policy_suffix.isidentifier():
            raise ConfigurationError(
                config_key="policy_suffix",
                expected="a valid identifier suffix",
                received=self.policy_suffix,
            )
        # Without a prefix every policy method would answer as a predicate
        if not self.predicate_prefix.isidentifier():
            raise ConfigurationError(
                config_key="predicate_prefix",
                expected="a valid identifier prefix",
                received=self.predicate_prefix,
            )
        if not self.permitted_attributes_method.isidentifier():
            raise ConfigurationError(
                config_key="permitted_attributes_method",
                expected="a valid method name",
                received=self.permitted_attributes_method,
            )

    @classmethod
    def default(cls) -> GateConfig:
        """Create default configuration."""
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GateConfig:
        """
        Create configuration from a plain dictionary.

        Raises:
            ConfigurationError: On unknown keys or invalid values.

        Example:
            >>> GateConfig.from_dict({"verify_policy_scoped": True})
        """
        known = {f.name for f in fields(cls)}
        for key in data:
            if key not in known:
                raise ConfigurationError(
                    config_key=key,
                    expected=f"one of: {', '.join(sorted(known))}",
                )
        return cls(**data)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)
