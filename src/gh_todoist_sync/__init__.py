"""
gh-todoist-sync: Mirror GitHub issues and pull requests into Todoist.

This package provides a one-shot synchronization job that reads open
issues and pull requests from an account's public repositories and
creates matching Todoist tasks, grouped into sections by repository.
"""

__version__ = "1.0.0"
