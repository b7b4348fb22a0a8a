"""Custom exceptions for HVS mineral analysis."""

from __future__ import annotations


class HvsAnalysisError(Exception):
    """Base exception for analysis errors."""

    code: str = "ANALYSIS_ERROR"

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class InputShapeError(HvsAnalysisError, ValueError):
    """Image, mask or ROI do not describe the same pixel grid."""

    code = "INVALID_INPUT_SHAPE"


class ImageLoadError(HvsAnalysisError):
    """Image or mask file could not be decoded."""

    code = "IMAGE_LOAD_FAILED"


class AnalysisCancelled(HvsAnalysisError):
    """Caller requested cancellation while the pipeline was running."""

    code = "ANALYSIS_CANCELLED"

    def __init__(self, message: str = "Analysis cancelled by caller", details: dict | None = None):
        super().__init__(message, details)
