# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
PBS/Torque backend: submission commands built with qsub, bulk status
parsed from the columns of qstat, and jobs released and aborted with qrls and qdel.
"""

from .pbs import PBS

__all__ = ["PBS"]
