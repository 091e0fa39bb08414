"""
Execution package for sqlshift: parameter binding and the async executor.
"""

from sqlshift.execution.binder import (
    Param,
    ParamKind,
    PreparedStatement,
    bind_parameters,
    classify,
    prepare,
)
from sqlshift.execution.executor import SQLExecutor

__all__ = [
    "Param",
    "ParamKind",
    "PreparedStatement",
    "SQLExecutor",
    "bind_parameters",
    "classify",
    "prepare",
]
