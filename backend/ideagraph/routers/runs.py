"""Batch pass routes."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ideagraph.clustering.builder import ClusterBuilder
from ideagraph.db.dependencies import get_db
from ideagraph.entity_resolution.resolver import ResolutionEngine
from ideagraph.schemas.common import ApiResponse
from ideagraph.schemas.runs import ClusterRunResult, ResolutionRunResult
from ideagraph.services.embeddings import EmbeddingClient, EmbeddingError, get_default_embedding_client

router = APIRouter(prefix="/runs")


def get_embedding_client() -> EmbeddingClient:
    try:
        return get_default_embedding_client()
    except EmbeddingError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc


@router.post("/resolve", response_model=ApiResponse[ResolutionRunResult])
def run_resolution(
    db: Session = Depends(get_db),
    embedding_client: EmbeddingClient = Depends(get_embedding_client),
) -> ApiResponse[ResolutionRunResult]:
    """Resolve every ungrouped source item onto canonical entities."""

    return ApiResponse(data=ResolutionEngine(db, embedding_client=embedding_client).run())


@router.post("/cluster", response_model=ApiResponse[ClusterRunResult])
def run_clustering(db: Session = Depends(get_db)) -> ApiResponse[ClusterRunResult]:
    """Fold ungrouped source items into clustered ideas."""

    return ApiResponse(data=ClusterBuilder(db).run())
