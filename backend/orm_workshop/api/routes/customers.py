"""
Customer listing and creation over the async session.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ...models import CustomerDTO
from ...repositories import CustomerRepository
from ..deps import get_customer_repository

router = APIRouter(prefix="/customers", tags=["customers"])


@router.get("", response_model=List[CustomerDTO])
async def find_customers(
    firstname: Optional[str] = Query(None),
    lastname: Optional[str] = Query(None),
    repository: CustomerRepository = Depends(get_customer_repository),
):
    if firstname is not None:
        return await repository.find_by_firstname(firstname)
    if lastname is not None:
        return await repository.find_by_lastname(lastname)
    return [CustomerDTO.model_validate(c) for c in await repository.find_all()]


@router.post("", response_model=CustomerDTO)
async def save_customer(customer: CustomerDTO, repository: CustomerRepository = Depends(get_customer_repository)):
    return await repository.save(customer)
