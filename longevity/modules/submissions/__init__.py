"""
Submissions Module
==================

Consumes `submission.approved` and drives leaderboard, league and badge
updates.
"""

from .listener import ApprovalOutcome, SubmissionApprovalHandler

__all__ = ["ApprovalOutcome", "SubmissionApprovalHandler"]
