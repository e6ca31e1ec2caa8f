"""
Business Logic Services
"""
from .auto_resolution import AutoResolutionWorkflow
from .classification import ClassificationClient
from .confidence import ConfidenceEngine
from .notifier import CustomerNotifier

__all__ = [
    "AutoResolutionWorkflow",
    "ClassificationClient",
    "ConfidenceEngine",
    "CustomerNotifier",
]
