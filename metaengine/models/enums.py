"""Enum definitions for analysis options and labels."""

from enum import Enum


class PoolingModel(str, Enum):
    FIXED = "fixed"
    RANDOM = "random"


class HeterogeneityLevel(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    SUBSTANTIAL = "substantial"
    CONSIDERABLE = "considerable"


class ValidatorBackend(str, Enum):
    STATSMODELS = "statsmodels"
    SUBPROCESS = "subprocess"
