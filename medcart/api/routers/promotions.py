# medcart/api/routers/promotions.py
from fastapi import APIRouter, Depends

from medcart.api.deps import get_catalog
from medcart.domain.schemas import PromotionList, PromotionOut
from medcart.services.promotion_catalog import PromotionCatalog

router = APIRouter(prefix="/promotions", tags=["promotions"])


@router.get("/", response_model=PromotionList)
def list_promotions(catalog: PromotionCatalog = Depends(get_catalog)):
    return PromotionList(
        promotions=[
            PromotionOut(
                id=p.id,
                title=p.title,
                description=p.description,
                code=p.code,
                auto_apply=p.auto_apply,
            )
            for p in catalog
        ]
    )
