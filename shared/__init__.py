"""
Shared Kernel

Value objects and helpers shared across the domain apps.
"""
