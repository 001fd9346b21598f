"""Pipeline orchestration components for ragassist."""

from ragassist.pipeline.orchestrator import RetrievalOrchestrator
from ragassist.pipeline.store_router import VectorStoreRouter

__all__ = ["RetrievalOrchestrator", "VectorStoreRouter"]
