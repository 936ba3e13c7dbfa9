"""
RecipeShare Backend — Category Route Handler
"""

from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.schemas.category import CategoryResponse
from app.services.category_service import category_service

router = APIRouter(prefix="/api", tags=["Categories"])


@router.get("/categories", response_model=List[CategoryResponse], summary="List recipe categories")
async def list_categories(
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> List[CategoryResponse]:
    categories = await category_service.list_categories(db)
    response.headers["X-Total-Count"] = str(len(categories))
    # Seeded taxonomy; changes only with a migration
    response.headers["Cache-Control"] = "public, max-age=300"
    return [CategoryResponse.model_validate(c) for c in categories]
