"""Contract API endpoints.

- POST /v1/contracts - Create a contract with its member bookings
- GET /v1/contracts - List contracts
- GET /v1/contracts/{contract_id} - Get a contract with its bookings
- PUT /v1/contracts/{contract_id}/members - Replace the member set
- PATCH /v1/contracts/{contract_id}/status - Move all members to a status
- POST /v1/contracts/{contract_id}/cancel - Cancel the contract
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, status

from venuebook.api.dependencies import ContextDep, CoordinatorDep
from venuebook.api.schemas.booking import (
    CancelRequest,
    ContractMembersRequest,
    ContractResponse,
    ContractStatusRequest,
    WriteResponse,
    contract_write_response,
)
from venuebook.booking.types import ContractInput

router = APIRouter(prefix="/contracts", tags=["contracts"])


@router.post(
    "",
    response_model=WriteResponse[ContractResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_contract(
    body: ContractInput,
    ctx: ContextDep,
    coordinator: CoordinatorDep,
) -> WriteResponse[ContractResponse]:
    """Create a contract; any blocking conflict rejects the whole contract."""
    result = await coordinator.create_contract(ctx, body)
    return contract_write_response(result)


@router.get("", response_model=list[ContractResponse])
async def list_contracts(
    ctx: ContextDep,
    coordinator: CoordinatorDep,
    customer_id: UUID | None = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> list[ContractResponse]:
    """List contracts, optionally only those of one customer."""
    views = await coordinator.list_contracts(
        ctx, customer_id=customer_id, limit=limit, offset=offset
    )
    return [ContractResponse.from_view(v) for v in views]


@router.get("/{contract_id}", response_model=ContractResponse)
async def get_contract(
    contract_id: UUID,
    ctx: ContextDep,
    coordinator: CoordinatorDep,
) -> ContractResponse:
    view = await coordinator.get_contract(ctx, contract_id)
    return ContractResponse.from_view(view)


@router.put("/{contract_id}/members", response_model=WriteResponse[ContractResponse])
async def replace_members(
    contract_id: UUID,
    body: ContractMembersRequest,
    ctx: ContextDep,
    coordinator: CoordinatorDep,
) -> WriteResponse[ContractResponse]:
    """Replace the member set; all resulting rows are applied or none."""
    result = await coordinator.update_contract(ctx, contract_id, body.members)
    return contract_write_response(result)


@router.patch("/{contract_id}/status", response_model=WriteResponse[ContractResponse])
async def update_contract_status(
    contract_id: UUID,
    body: ContractStatusRequest,
    ctx: ContextDep,
    coordinator: CoordinatorDep,
) -> WriteResponse[ContractResponse]:
    result = await coordinator.update_contract_status(ctx, contract_id, body.status)
    return contract_write_response(result)


@router.post("/{contract_id}/cancel", response_model=WriteResponse[ContractResponse])
async def cancel_contract(
    contract_id: UUID,
    ctx: ContextDep,
    coordinator: CoordinatorDep,
    body: CancelRequest | None = None,
) -> WriteResponse[ContractResponse]:
    body = body or CancelRequest()
    result = await coordinator.cancel_contract(
        ctx, contract_id, reason=body.reason, note=body.note
    )
    return contract_write_response(result)
