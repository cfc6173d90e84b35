"""Lifecycle orchestration engine.

Transition pipelines, cascade strategies, collection batch operations,
stable membership workflows, and the composite action pipeline.
"""

from ringside.orchestration.actions import UnifiedActions
from ringside.orchestration.cascades import (
    EmploymentCascadeStrategy,
    ReinstatementCascadeStrategy,
    RetirementCascadeStrategy,
    SuspensionCascadeStrategy,
)
from ringside.orchestration.collection import MemberCollectionManager
from ringside.orchestration.pipeline import ActionPipeline, PipelineResult
from ringside.orchestration.stables import StableMembershipOrchestrator
from ringside.orchestration.transition import CascadeChain, StatusTransitionPipeline

__all__ = [
    "ActionPipeline",
    "CascadeChain",
    "EmploymentCascadeStrategy",
    "MemberCollectionManager",
    "PipelineResult",
    "ReinstatementCascadeStrategy",
    "RetirementCascadeStrategy",
    "StableMembershipOrchestrator",
    "StatusTransitionPipeline",
    "SuspensionCascadeStrategy",
    "UnifiedActions",
]
