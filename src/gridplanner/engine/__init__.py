"""Engine module for grid plan operations.

This module provides the operation registry, the validated commit pipeline
every geometry change goes through, and project level management.
"""

from .api import apply, apply_all
from .pipeline import commit

__all__ = ["apply", "apply_all", "commit"]
