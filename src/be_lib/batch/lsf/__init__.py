# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from .lsf import LSF

__all__ = ["LSF"]
