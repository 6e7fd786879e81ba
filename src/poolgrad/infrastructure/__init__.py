"""
Infrastructure layer: NumPy-backed storage, kernels, values and modules.
"""
