"""
policygate test suite.

This package contains tests for policygate:
- Naming conventions
- Policies, scopes and the policy registry
- Gate and per-request authorization
- Payload filtering
- End-of-request verification and handler decorators
- Configuration and exceptions
"""
