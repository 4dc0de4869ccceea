"""Utility functions and classes."""

from jobtracker.utils.listing import ListViewState, derive_list
from jobtracker.utils.validators import collect_field_errors

__all__ = ["ListViewState", "collect_field_errors", "derive_list"]
