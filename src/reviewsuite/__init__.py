"""reviewsuite - Multi-stage code review orchestration for conversational agents.

This package drives a conversational coding agent through an ordered pipeline
of independent review passes over a git scope (working tree, staged changes,
a pull request or a commit range), hides earlier passes from later ones, and
finishes with a synthesis pass that merges every report into one.
"""

__version__ = "0.1.0"
