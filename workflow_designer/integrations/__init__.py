"""External integration adapters."""

from .workflow_api import WorkflowAPIClient

__all__ = ["WorkflowAPIClient"]
