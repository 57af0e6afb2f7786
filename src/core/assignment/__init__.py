# src/core/assignment/__init__.py
"""
Арбитр назначений заказов.
"""

from src.core.assignment.service import AssignmentService

__all__ = ["AssignmentService"]
