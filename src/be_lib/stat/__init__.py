# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Display of job states.

This module provides `StatusPresenter`, which formats the states and metadata
of jobs obtained from the backend into compact CLI tables and Rich panels.
"""

from .presenter import StatusPresenter

__all__ = ["StatusPresenter"]
