"""Configuration models loaded from YAML."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from metaengine.models.enums import PoolingModel, ValidatorBackend


class MetaAnalysisConfig(BaseModel):
    default_model: PoolingModel = PoolingModel.RANDOM
    publication_bias_minimum_studies: int = Field(default=10, ge=3)
    sensitivity_minimum_studies: int = Field(default=3, ge=3)
    significance_level: float = Field(default=0.05, gt=0.0, lt=1.0)


class ValidationConfig(BaseModel):
    enabled: bool = False
    backend: ValidatorBackend = ValidatorBackend.STATSMODELS
    tolerance: float = Field(default=1e-6, gt=0.0)
    timeout_seconds: float = Field(default=30.0, gt=0.0)
    max_attempts: int = Field(default=3, ge=1, le=10)
    initial_delay: float = Field(default=0.5, ge=0.0)
    max_delay: float = Field(default=10.0, ge=0.0)


class LoggingConfig(BaseModel):
    level: str = Field(default="normal", pattern="^(minimal|normal|detailed|full)$")
    log_to_file: bool = False
    log_file: str = "logs/metaengine.log"
    structured_log_dir: Optional[str] = None


class EngineSettings(BaseModel):
    meta_analysis: MetaAnalysisConfig = Field(default_factory=MetaAnalysisConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
