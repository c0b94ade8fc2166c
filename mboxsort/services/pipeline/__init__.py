"""Pipeline coordination."""

from .coordinator import PipelineCoordinator, PipelineResult, sort_mailbox

__all__ = ["PipelineCoordinator", "PipelineResult", "sort_mailbox"]
