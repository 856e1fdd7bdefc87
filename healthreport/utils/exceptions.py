"""
Custom Exception Hierarchy

Provides specific exception types for the report engine's failure
categories with structured error information.

Field- and section-level problems (unresolvable paths, non-numeric values)
are recovered where they happen and never raised; only document-level and
infrastructure-level failures use these types.
"""
from typing import Optional, Dict, Any


class ReportEngineError(Exception):
    """Base exception for all report engine errors."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details
        }


class ConfigMissingError(ReportEngineError):
    """No report definition is registered for an assessment type."""

    def __init__(
        self,
        message: str,
        assessment_type_id: str = "unknown",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="CONFIG_MISSING",
            details={"assessment_type_id": assessment_type_id, **(details or {})}
        )
        self.assessment_type_id = assessment_type_id


class DataMissingError(ReportEngineError):
    """The requested session has no underlying assessment record."""

    def __init__(
        self,
        message: str,
        session_id: str = "unknown",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="DATA_MISSING",
            details={"session_id": session_id, **(details or {})}
        )
        self.session_id = session_id


class DefinitionLoadError(ReportEngineError):
    """The report definition table could not be loaded or failed validation."""

    def __init__(
        self,
        message: str,
        source: str = "unknown",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="DEFINITION_LOAD_ERROR",
            details={"source": source, **(details or {})}
        )
        self.source = source


class RenderFailureError(ReportEngineError):
    """The rendering engine failed or exceeded its timeout."""

    def __init__(
        self,
        message: str,
        session_id: str = "unknown",
        state: str = "unknown",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="RENDER_FAILURE",
            details={"session_id": session_id, "state": state, **(details or {})}
        )
        self.session_id = session_id
        self.state = state


class ArtifactIOError(ReportEngineError):
    """The output directory or artifact file could not be created."""

    def __init__(
        self,
        message: str,
        path: str = "unknown",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="ARTIFACT_IO_ERROR",
            details={"path": path, **(details or {})}
        )
        self.path = path


class InvalidFileNameError(ReportEngineError):
    """A file name does not follow the engine's artifact naming convention."""

    def __init__(
        self,
        message: str,
        file_name: str = "",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="INVALID_FILE_NAME",
            details={"file_name": file_name, **(details or {})}
        )
        self.file_name = file_name


class ArtifactNotFoundError(ReportEngineError):
    """A well-formed artifact name that has no file on disk."""

    def __init__(
        self,
        message: str,
        file_name: str = "",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="ARTIFACT_NOT_FOUND",
            details={"file_name": file_name, **(details or {})}
        )
        self.file_name = file_name
