"""Adapters for the external collaborators the coordinator talks to."""

from .base import ProfileSource, TaskBreakdownGenerator
from .profile_store import SqlProfileStore
from .task_breakdown import HttpTaskBreakdownGenerator, StaticTaskBreakdownGenerator

__all__ = [
    "ProfileSource",
    "TaskBreakdownGenerator",
    "SqlProfileStore",
    "HttpTaskBreakdownGenerator",
    "StaticTaskBreakdownGenerator",
]
