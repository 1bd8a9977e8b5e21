"""
Domain models and policies shared by the test suite.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar

from policygate.policies.base import Policy, Scope


@dataclass(frozen=True)
class User:
    user_id: str
    roles: list[str] = field(default_factory=list)

    @property
    def is_admin(self) -> bool:
        return "admin" in self.roles


class Post:
    records: ClassVar[list[Post]] = []

    def __init__(self, author_id: str = "user_123", published: bool = True) -> None:
        self.author_id = author_id
        self.published = published

    @classmethod
    def all(cls) -> list[Post]:
        return list(cls.records)


class BlogPost:
    pass


class Comment:
    pass


class Article:
    model_name = "Story"


class Invoice:
    pass


class WithoutPolicy:
    pass


class PostPolicy(Policy[Post]):
    def can_index(self) -> bool:
        return True

    def can_show(self) -> bool:
        return False

    def can_update(self) -> bool:
        return self.user is not None and self.resource.author_id == self.user.user_id

    def can_destroy(self) -> bool:
        return self.user is not None and self.user.is_admin

    def permitted_attributes(self) -> list[str]:
        return ["name"]

    def permitted_attributes_for_create(self) -> list[str]:
        return ["surname"]

    class Scope(Scope[Post]):
        def resolve(self) -> list[Post]:
            posts = self.scope.all()
            if self.user is not None and self.user.is_admin:
                return posts
            return [post for post in posts if post.published]


class BlogPostPolicy(Policy[BlogPost]):
    permitted_attributes = ["title", {"tags": []}, {"author": ["name"]}]

    def can_create(self) -> bool:
        return True


class CommentPolicy(Policy[Comment]):
    param_key = "data"

    def can_create(self) -> bool:
        return True

    def permitted_attributes(self) -> list[str]:
        return ["body"]


class StoryPolicy(Policy[Article]):
    def can_show(self) -> bool:
        return True


class DashboardPolicy(Policy[Any]):
    def can_show(self) -> bool:
        return self.user is not None and self.user.is_admin


class BillingPolicy(Policy[Invoice]):
    """Bound explicitly to Invoice, not found by name."""

    def can_show(self) -> bool:
        return self.context.get("ip") == "127.0.0.1"

    @property
    def scope(self) -> list[str]:
        return ["invoice-1"]


class ContextRecordingPolicy(Policy[Any]):
    def can_show(self) -> bool:
        return True


ALL_POLICIES = [
    PostPolicy,
    BlogPostPolicy,
    CommentPolicy,
    StoryPolicy,
    DashboardPolicy,
]
