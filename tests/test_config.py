"""
Tests for gate configuration and the exception hierarchy.
"""

from __future__ import annotations

import pytest

from policygate import (
    UNSET,
    AuthorizationOptions,
    ConfigurationError,
    GateConfig,
    NoSuchActionError,
    NotAuthorizedError,
    PolicygateError,
    PolicyResolutionError,
)
from tests.support import Post, PostPolicy


class TestGateConfig:
    """Tests for GateConfig."""

    def test_defaults(self):
        config = GateConfig.default()
        assert config.policy_suffix == "Policy"
        assert config.predicate_prefix == "can_"
        assert config.permitted_attributes_method == "permitted_attributes"
        assert config.verify_authorized is True
        assert config.verify_policy_scoped is False

    def test_from_dict(self):
        config = GateConfig.from_dict({"verify_policy_scoped": True, "policy_suffix": "Rules"})
        assert config.verify_policy_scoped is True
        assert config.policy_suffix == "Rules"

    def test_from_dict_unknown_key(self):
        with pytest.raises(ConfigurationError) as exc_info:
            GateConfig.from_dict({"policy_engine": "opa"})

        assert exc_info.value.config_key == "policy_engine"

    @pytest.mark.parametrize(
        "key,value",
        [
            ("policy_suffix", "-Policy"),
            ("predicate_prefix", "can-"),
            ("permitted_attributes_method", "permitted attributes"),
        ],
    )
    def test_invalid_names(self, key: str, value: str):
        with pytest.raises(ConfigurationError) as exc_info:
            GateConfig(**{key: value})

        assert exc_info.value.received == value

    def test_empty_prefix_rejected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            GateConfig(predicate_prefix="")

        assert exc_info.value.config_key == "predicate_prefix"

    def test_to_dict_round_trip(self):
        config = GateConfig(verify_authorized=False)
        assert GateConfig.from_dict(config.to_dict()) == config


class TestAuthorizationOptions:
    """Tests for AuthorizationOptions."""

    def test_defaults(self):
        options = AuthorizationOptions()
        assert options.user is UNSET
        assert options.has_user is False
        assert options.resolved_context() == {}

    def test_none_user_is_supplied(self):
        assert AuthorizationOptions(user=None).has_user is True

    def test_without_action(self):
        options = AuthorizationOptions(action="update", context={"a": 1})
        stripped = options.without_action()

        assert stripped.action is None
        assert stripped.context == {"a": 1}
        assert options.action == "update"

    def test_unset_is_singleton_and_falsy(self):
        assert type(UNSET)() is UNSET
        assert not UNSET
        assert repr(UNSET) == "UNSET"


class TestExceptions:
    """Tests for the exception hierarchy."""

    def test_all_errors_share_base(self):
        for error_class in (NotAuthorizedError, PolicyResolutionError, NoSuchActionError):
            assert issubclass(error_class, PolicygateError)

    def test_not_authorized_message(self):
        policy = PostPolicy(None, Post())
        error = NotAuthorizedError(action="update", target=policy.resource, policy=policy)

        assert error.message == "Not allowed to update Post instance (decided by PostPolicy)"
        assert error.to_dict()["details"]["policy"] == "PostPolicy"

    def test_policy_resolution_message(self):
        error = PolicyResolutionError(
            target=Post,
            policy_name="PostPolicy",
            available_policies=["CommentPolicy"],
        )
        assert "Unable to find policy 'PostPolicy' for Post" in str(error)
        assert error.to_dict()["error_type"] == "PolicyResolutionError"

    def test_str_without_details(self):
        assert str(PolicygateError("plain")) == "plain"
