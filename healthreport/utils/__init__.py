"""
Utilities Package - Logging and Exception Handling
"""
from .logging import get_logger, session_logger, setup_logging
from .exceptions import (
    ReportEngineError,
    ConfigMissingError,
    DataMissingError,
    DefinitionLoadError,
    RenderFailureError,
    ArtifactIOError,
    InvalidFileNameError,
    ArtifactNotFoundError,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "session_logger",
    "ReportEngineError",
    "ConfigMissingError",
    "DataMissingError",
    "DefinitionLoadError",
    "RenderFailureError",
    "ArtifactIOError",
    "InvalidFileNameError",
    "ArtifactNotFoundError",
]
