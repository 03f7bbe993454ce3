"""Fund structure endpoints."""

from fastapi import APIRouter, Depends

from fundstat.api.deps import get_fund_structure_service
from fundstat.api.schemas import (
    FundAccountListResponse,
    FundAccountResponse,
    FundStructureResponse,
)
from fundstat.services import FundStructureService

router = APIRouter(prefix="/fund", tags=["fund"])


@router.get("/accounts", response_model=FundAccountListResponse)
def list_fund_accounts(
    fund: FundStructureService = Depends(get_fund_structure_service),
) -> FundAccountListResponse:
    """List the registered fund accounts."""
    accounts = fund.get_fund_accounts()
    return FundAccountListResponse(
        accounts=[FundAccountResponse.from_model(a) for a in accounts],
        count=len(accounts),
    )


@router.get("/structure", response_model=FundStructureResponse)
async def get_fund_structure(
    fund: FundStructureService = Depends(get_fund_structure_service),
) -> FundStructureResponse:
    """Value every fund account and aggregate the counted ones."""
    report = await fund.get_fund_structure()
    return FundStructureResponse.from_view(report)
