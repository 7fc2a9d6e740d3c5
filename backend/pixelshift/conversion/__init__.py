from .workflow import ConversionWorkflow, get_workflow
from .models import ConvertedArtifact, ImageFormat, UploadedFile, WorkflowState, WorkflowStatus

__all__ = [
    "ConversionWorkflow",
    "get_workflow",
    "ConvertedArtifact",
    "ImageFormat",
    "UploadedFile",
    "WorkflowState",
    "WorkflowStatus",
]
