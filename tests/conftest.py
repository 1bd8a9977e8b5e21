"""
Pytest fixtures for policygate tests.

Provides common fixtures used across all test modules.
"""

from __future__ import annotations

from collections.abc import Generator

import pytest

from policygate import Gate, GateConfig, RequestAuthorization
from policygate.policies.registry import PolicyRegistry, reset_global_registry
from tests.support import ALL_POLICIES, BillingPolicy, Invoice, Post, User


# ============================================================================
# User Fixtures
# ============================================================================


@pytest.fixture
def basic_user() -> User:
    """Create a basic user for testing."""
    return User(user_id="user_123", roles=["user"])


@pytest.fixture
def admin_user() -> User:
    """Create an admin user for testing."""
    return User(user_id="admin_456", roles=["admin", "user"])


@pytest.fixture
def other_user() -> User:
    """Create a user who owns nothing."""
    return User(user_id="other_789", roles=["user"])


# ============================================================================
# Domain Fixtures
# ============================================================================


@pytest.fixture
def post() -> Post:
    """A published post written by basic_user."""
    return Post(author_id="user_123", published=True)


@pytest.fixture
def stored_posts() -> Generator[list[Post], None, None]:
    """Populate Post.all() with one published and one draft post."""
    posts = [
        Post(author_id="user_123", published=True),
        Post(author_id="admin_456", published=False),
    ]
    Post.records = posts
    yield posts
    Post.records = []


@pytest.fixture
def payload() -> dict:
    """A request payload with a field no policy permits."""
    return {
        "post": {
            "surname": "sd",
            "name": "Francesco",
            "not_permitted": "not",
        }
    }


# ============================================================================
# Registry and Gate Fixtures
# ============================================================================


@pytest.fixture
def policy_registry() -> PolicyRegistry:
    """Create a fresh policy registry with the test policies registered."""
    registry = PolicyRegistry()
    for policy_class in ALL_POLICIES:
        registry.register_by_convention(policy_class)
    registry.register(BillingPolicy, target=Invoice)
    return registry


@pytest.fixture
def empty_registry() -> PolicyRegistry:
    """Create an empty policy registry."""
    return PolicyRegistry()


@pytest.fixture(autouse=True)
def clean_global_registry() -> Generator[None, None, None]:
    """Keep the global registry from leaking between tests."""
    yield
    reset_global_registry()


@pytest.fixture
def gate(policy_registry: PolicyRegistry, basic_user: User) -> Gate:
    """Create a gate whose current user is basic_user."""
    return Gate(registry=policy_registry, current_user=lambda: basic_user)


@pytest.fixture
def anonymous_gate(policy_registry: PolicyRegistry) -> Gate:
    """Create a gate using the context-variable user lookup."""
    return Gate(registry=policy_registry)


@pytest.fixture
def strict_gate(policy_registry: PolicyRegistry, basic_user: User) -> Gate:
    """Create a gate that verifies both authorization and scoping."""
    return Gate(
        registry=policy_registry,
        config=GateConfig(verify_authorized=True, verify_policy_scoped=True),
        current_user=lambda: basic_user,
    )


@pytest.fixture
def auth(gate: Gate, payload: dict) -> RequestAuthorization:
    """Open a request for the 'update' action with the sample payload."""
    return gate.request(action="update", handler="posts.update", params=payload)
