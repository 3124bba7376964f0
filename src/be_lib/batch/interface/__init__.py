# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Abstractions for integrating batcheuphoria with batch backends.

This module defines the contract every backend implements:

- `BatchAdapter`: the static-method interface bundling command building,
  bulk status parsing, state-token mapping, hold policy, and abort
  command construction of one backend.

- `StatusRecord` and `DependencyMode`: a parsed status line and the way a
  backend expresses dependencies between jobs.

- `AdapterMeta`: a metaclass that registers available backends and selects
  one by name, from an environment variable, or by probing availability.
  The `@batch_adapter` decorator registers implementations.
"""

from .interface import BatchAdapter, DependencyMode, StatusRecord
from .meta import AdapterMeta, batch_adapter

__all__ = [
    "AdapterMeta",
    "BatchAdapter",
    "DependencyMode",
    "StatusRecord",
    "batch_adapter",
]
