# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Backend support for batcheuphoria.

This module groups the adapter contract together with the concrete backends:
LSF, PBS/Torque, and direct synchronous execution on the current host.
"""

# import so that these backends are registered but do not export them from here
# (guessing tries them in the order of registration, Direct is always available)
from .lsf import LSF as _LSF  # isort: skip
from .pbs import PBS as _PBS  # isort: skip
from .direct import Direct as _Direct  # isort: skip

_LSF, _PBS, _Direct
