"""Core types shared by every rcbot layer."""

from .config import ActionConfig, ConfigurationError, RepoSlug, load_action_config
from .errors import ErrorCode
from .result import Err, Ok, Result, is_err, is_ok

__all__ = [
    # config
    "ActionConfig",
    "ConfigurationError",
    "RepoSlug",
    "load_action_config",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
]
