# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Properties and structured metadata of batch jobs.

This module collects the value types describing what a job requests and what
a backend reports about it: the canonical job state, memory sizes, resource
requests, backend-native processing parameters, and normalized job metadata.
"""
