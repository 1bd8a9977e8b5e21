"""
Naming conventions for policygate.

Derives the conventional policy class name and payload key for a target:

    Post instance      -> type name "Post"      -> "PostPolicy", "post"
    BlogPost class     -> type name "BlogPost"  -> "BlogPostPolicy", "blog_post"
    "dashboard" string -> type name "Dashboard" -> "DashboardPolicy", "dashboard"

All functions here are pure.
"""

from __future__ import annotations

import re
from typing import Any

from policygate.exceptions import PolicyResolutionError

DEFAULT_POLICY_SUFFIX = "Policy"

_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_BOUNDARY = re.compile(r"([a-z\d])([A-Z])")
_SEPARATORS = re.compile(r"[\s\-_.]+")


def underscore(name: str) -> str:
    """
    Convert a CamelCase name to snake_case.

    Example:
        >>> underscore("BlogPost")
        'blog_post'
        >>> underscore("HTTPRequest")
        'http_request'
    """
    snake = _ACRONYM_BOUNDARY.sub(r"\1_\2", name)
    snake = _WORD_BOUNDARY.sub(r"\1_\2", snake)
    return _SEPARATORS.sub("_", snake).strip("_").lower()


def camelize(name: str) -> str:
    """
    Convert a snake_case (or dashed) name to CamelCase.

    Parts that already carry capitals keep them.

    Example:
        >>> camelize("admin_report")
        'AdminReport'
    """
    return "".join(part[:1].upper() + part[1:] for part in _SEPARATORS.split(name) if part)


def type_name(target: Any) -> str:
    """
    Get the declared type name of a target.

    Resolution order:
        1. a string ``model_name`` attribute on the target (or its class);
        2. for strings, the camelized string (headless targets);
        3. for classes, the class name;
        4. for anything else, the name of its class.

    Raises:
        PolicyResolutionError: If no name can be derived.
    """
    model_name = getattr(target, "model_name", None)
    if isinstance(model_name, str) and model_name:
        return model_name

    if isinstance(target, str):
        name = camelize(target)
    elif isinstance(target, type):
        name = target.__name__
    else:
        name = type(target).__name__

    if not name:
        raise PolicyResolutionError(target=target, reason="target has no type name")
    return name


def default_policy_name(target: Any, suffix: str = DEFAULT_POLICY_SUFFIX) -> str:
    """
    Get the conventional policy class name for a target.

    Example:
        >>> default_policy_name(Post())
        'PostPolicy'
    """
    return f"{type_name(target)}{suffix}"


def default_param_key(target: Any) -> str:
    """
    Get the conventional top-level payload key for a target.

    Example:
        >>> default_param_key(BlogPost)
        'blog_post'
    """
    return underscore(type_name(target))
