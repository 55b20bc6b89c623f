"""
Admin Console - Review and manage contact form submissions.

This package provides a Streamlit-based console for browsing, filtering,
exporting and moderating submissions kept in a hosted document store.
"""

__version__ = "1.0.0"
__author__ = "Development Team"
__email__ = "dev@example.com"
