"""Configuration loading and schema for labelmia."""

from labelmia.config.loader import config_to_dict, default_config, load_config
from labelmia.config.schema import (
    DataConfig,
    DataSource,
    HSJAConfig,
    LabelMIAConfig,
    MembershipConfig,
    ModelConfig,
    OracleErrorPolicy,
    ReportingConfig,
)

__all__ = [
    "DataConfig",
    "DataSource",
    "HSJAConfig",
    "LabelMIAConfig",
    "MembershipConfig",
    "ModelConfig",
    "OracleErrorPolicy",
    "ReportingConfig",
    "config_to_dict",
    "default_config",
    "load_config",
]
