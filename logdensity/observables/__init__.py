"""Likelihood over cached observable predictions."""

from .likelihood import (
    Observable,
    ObservableCache,
    GaussianBlock,
    Constraint,
    LogLikelihood,
)

__all__ = [
    "Observable",
    "ObservableCache",
    "GaussianBlock",
    "Constraint",
    "LogLikelihood",
]
