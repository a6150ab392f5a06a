"""Read-only catalog routes for canonical entities and source items."""

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy.orm import Session

from ideagraph.db.dependencies import get_db
from ideagraph.schemas.common import ApiResponse
from ideagraph.schemas.entity import IdeaRead, ProblemRead, ProductRead
from ideagraph.schemas.source_item import SourceItemRead
from ideagraph.services import entity_store
from ideagraph.services.entity_kinds import IDEA, PROBLEM, PRODUCT

LimitParam = Query(default=50, ge=1, le=500)
OffsetParam = Query(default=0, ge=0)

router = APIRouter()


@router.get("/problems", response_model=ApiResponse[list[ProblemRead]])
def get_problems(
    limit: int = LimitParam,
    offset: int = OffsetParam,
    db: Session = Depends(get_db),
) -> ApiResponse[list[ProblemRead]]:
    """List canonical problems, highest score first."""

    problems = entity_store.list_problems(db, limit=limit, offset=offset)
    categories = entity_store.get_categories(db, PROBLEM, [problem.id for problem in problems])
    return ApiResponse(
        data=[
            ProblemRead.model_validate(problem).model_copy(update={"categories": categories[problem.id]})
            for problem in problems
        ]
    )


@router.get("/ideas", response_model=ApiResponse[list[IdeaRead]])
def get_ideas(
    limit: int = LimitParam,
    offset: int = OffsetParam,
    db: Session = Depends(get_db),
) -> ApiResponse[list[IdeaRead]]:
    """List canonical ideas, highest score first."""

    ideas = entity_store.list_ideas(db, limit=limit, offset=offset)
    categories = entity_store.get_categories(db, IDEA, [idea.id for idea in ideas])
    return ApiResponse(
        data=[IdeaRead.model_validate(idea).model_copy(update={"categories": categories[idea.id]}) for idea in ideas]
    )


@router.get("/products", response_model=ApiResponse[list[ProductRead]])
def get_products(
    limit: int = LimitParam,
    offset: int = OffsetParam,
    db: Session = Depends(get_db),
) -> ApiResponse[list[ProductRead]]:
    products = entity_store.list_products(db, limit=limit, offset=offset)
    categories = entity_store.get_categories(db, PRODUCT, [product.id for product in products])
    return ApiResponse(
        data=[
            ProductRead.model_validate(product).model_copy(update={"categories": categories[product.id]})
            for product in products
        ]
    )


@router.get("/source-items", response_model=ApiResponse[list[SourceItemRead]])
def get_source_items(
    ungrouped: bool = Query(default=False),
    limit: int = LimitParam,
    db: Session = Depends(get_db),
) -> ApiResponse[list[SourceItemRead]]:
    """List ingested source items in insertion order."""

    items = entity_store.list_source_items(db, ungrouped_only=ungrouped, limit=limit)
    return ApiResponse(data=[SourceItemRead.model_validate(item) for item in items])


@router.get("/source-items/{source_item_id}", response_model=ApiResponse[SourceItemRead])
def get_source_item(
    source_item_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
) -> ApiResponse[SourceItemRead]:
    item = entity_store.get_source_item(db, source_item_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Source item not found")
    return ApiResponse(data=SourceItemRead.model_validate(item))
