"""IAM policy helpers."""

from .documents import launch_role_inline_policy, launch_role_trust_policy
from .review import PolicyReview

__all__ = ["PolicyReview", "launch_role_inline_policy", "launch_role_trust_policy"]
