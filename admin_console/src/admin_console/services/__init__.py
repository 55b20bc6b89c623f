"""
Submission services for the admin console.

This module provides query building, paging and filtering over the
submissions collection.
"""

from .browser import LoadState, SubmissionBrowser
from .filtering import filter_submissions
from .query_builder import build_query

__all__ = ["LoadState", "SubmissionBrowser", "build_query", "filter_submissions"]
