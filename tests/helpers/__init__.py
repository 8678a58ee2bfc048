"""Test helper modules for the gitvendor test suite.

- env: TestGitRepo (real upstream repository) and project git helpers
- fake_git: FakeGitOperations, an in-memory backend that records calls
- project: vendor.yml / vendor.lock writers and a manager factory
"""
