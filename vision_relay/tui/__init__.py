"""Interactive surface for vision-relay"""

from .widgets import AnalysisLoader, AnalysisSpinner, AnalysisViewer

__all__ = ["AnalysisLoader", "AnalysisSpinner", "AnalysisViewer"]
