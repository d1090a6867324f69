"""Model exports for the analysis boundary."""

from metaengine.models.config import (
    EngineSettings,
    LoggingConfig,
    MetaAnalysisConfig,
    ValidationConfig,
)
from metaengine.models.enums import HeterogeneityLevel, PoolingModel, ValidatorBackend
from metaengine.models.results import (
    AnalysisFeasibility,
    BeggTest,
    BetweenGroupsTest,
    CrossValidationReport,
    EggerTest,
    Heterogeneity,
    InsufficientDataWarning,
    MetaAnalysisReport,
    PooledResult,
    PublicationBiasResult,
    RecomputedEstimate,
    SensitivityEntry,
    StudyEstimate,
    SubgroupEstimate,
    SubgroupResult,
)
from metaengine.models.studies import Study

__all__ = [
    "AnalysisFeasibility",
    "BeggTest",
    "BetweenGroupsTest",
    "CrossValidationReport",
    "EggerTest",
    "EngineSettings",
    "Heterogeneity",
    "HeterogeneityLevel",
    "InsufficientDataWarning",
    "LoggingConfig",
    "MetaAnalysisConfig",
    "MetaAnalysisReport",
    "PooledResult",
    "PoolingModel",
    "PublicationBiasResult",
    "RecomputedEstimate",
    "SensitivityEntry",
    "Study",
    "StudyEstimate",
    "SubgroupEstimate",
    "SubgroupResult",
    "ValidationConfig",
    "ValidatorBackend",
]
