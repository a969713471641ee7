"""
Sincronización de desired_size para node groups de EKS escalados externamente.
"""
__version__ = "0.1.0"
