"""Transaction endpoints."""

from fastapi import APIRouter, Depends, Query, status

from api.core.context import ServiceContext
from api.core.dependencies import get_service_context
from api.repositories.transaction_repos import TransactionRepository
from api.schemas.common import ApiResponse, ok
from api.schemas.finance import TransactionCreate, TransactionResponse
from api.services.automation_settings_service import AutomationSettingsService
from api.services.transaction_service import TransactionService
from api.shared.exceptions import BadRequestError, ItemProcessingError
from utils.date_utils import parse_date, start_of_day_utc

router = APIRouter(prefix="/api/v1/transactions", tags=["Transactions"])


@router.get("", response_model=ApiResponse[list[TransactionResponse]])
async def list_transactions(
    resident_id: int | None = Query(None, alias="residentId"),
    contract_id: int | None = Query(None, alias="contractId"),
    status_filter: str | None = Query(None, alias="status"),
    source: str | None = Query(None),
    from_date: str | None = Query(None, alias="from", description="YYYY-MM-DD, inclusive"),
    to_date: str | None = Query(None, alias="to", description="YYYY-MM-DD, exclusive"),
    limit: int = Query(100, ge=1, le=500),
    ctx: ServiceContext = Depends(get_service_context),
):
    try:
        start_day = parse_date(from_date) if from_date else None
        end_day = parse_date(to_date) if to_date else None
    except ValueError as e:
        raise BadRequestError(str(e)) from e

    timezone = await AutomationSettingsService(ctx.session, ctx.organization_id).timezone()
    start = start_of_day_utc(start_day, timezone) if start_day else None
    end = start_of_day_utc(end_day, timezone) if end_day else None

    transactions = await TransactionRepository(ctx.session).list(
        ctx.organization_id,
        resident_id=resident_id,
        contract_id=contract_id,
        status=status_filter.lower() if status_filter else None,
        source=source.lower() if source else None,
        from_date=start,
        to_date=end,
        limit=limit,
    )
    return ok([TransactionResponse.model_validate(t) for t in transactions])


@router.post("", response_model=ApiResponse[TransactionResponse], status_code=status.HTTP_201_CREATED)
async def create_transaction(data: TransactionCreate, ctx: ServiceContext = Depends(get_service_context)):
    """Create a draft transaction; a linked contract's balance is drawn down immediately."""
    service = TransactionService(ctx.session, ctx.organization_id)
    try:
        transaction = await service.create_manual(data.model_dump(), ctx.actor)
    except ItemProcessingError as e:
        raise BadRequestError(str(e)) from e
    return ok(TransactionResponse.model_validate(transaction))


@router.get("/{transaction_id}", response_model=ApiResponse[TransactionResponse])
async def get_transaction(transaction_id: int, ctx: ServiceContext = Depends(get_service_context)):
    transaction = await TransactionService(ctx.session, ctx.organization_id).get(transaction_id)
    return ok(TransactionResponse.model_validate(transaction))


@router.post("/{transaction_id}/post", response_model=ApiResponse[TransactionResponse])
async def post_transaction(transaction_id: int, ctx: ServiceContext = Depends(get_service_context)):
    transaction = await TransactionService(ctx.session, ctx.organization_id).post(transaction_id)
    return ok(TransactionResponse.model_validate(transaction))


@router.post("/{transaction_id}/void", response_model=ApiResponse[TransactionResponse])
async def void_transaction(transaction_id: int, ctx: ServiceContext = Depends(get_service_context)):
    """Void a transaction and restore its amount to the contract balance."""
    transaction = await TransactionService(ctx.session, ctx.organization_id).void(transaction_id)
    return ok(TransactionResponse.model_validate(transaction))
