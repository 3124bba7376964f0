# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Command-line abortion of jobs submitted to a batch backend.
"""
