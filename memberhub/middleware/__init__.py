"""Middleware exports."""

from memberhub.middleware.auth import AuthMiddleware

__all__ = ["AuthMiddleware"]
