"""
Numerical core: named matrices, correlation, PCA and pruning.
"""
