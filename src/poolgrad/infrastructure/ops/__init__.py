"""
Elementwise operators, naive and fast CPU kernels, and size-based dispatch.
"""
