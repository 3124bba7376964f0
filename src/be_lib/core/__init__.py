# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Core infrastructure for batcheuphoria.

This module collects the foundational helpers used across the codebase:
configuration, error types, structured logging, time and text utilities,
and help formatting for the command-line interface.
"""
