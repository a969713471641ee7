"""
Resolución del recurso externo objetivo.
"""
from .handle import ResourceHandle, resolve_handle

__all__ = ["ResourceHandle", "resolve_handle"]
