"""Workload simulation service: trivial, CPU-bound and I/O-bound routes."""

__version__ = "1.0.0"
