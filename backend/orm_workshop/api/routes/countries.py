"""
Cached country lookup by ISO code.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Path

from ...errors import EntityNotFoundError
from ...models import CountryDTO
from ...repositories import CachedCountryRepository
from ..deps import get_country_repository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/countries", tags=["countries"])

CountryCode = Path(..., min_length=2, max_length=2, description="ISO 3166-1 alpha-2 code")


@router.delete("/cache", status_code=204)
async def evict_cache_all(repository: CachedCountryRepository = Depends(get_country_repository)):
    await repository.evict_cache_all()


@router.get("/{code}", response_model=CountryDTO)
async def find_by_code(code: str = CountryCode, repository: CachedCountryRepository = Depends(get_country_repository)):
    country = await repository.find_by_code(code.upper())
    if country is None:
        raise EntityNotFoundError("Country", code)
    return country


@router.put("/{code}", response_model=int)
async def update_country(
    country: CountryDTO,
    code: str = CountryCode,
    repository: CachedCountryRepository = Depends(get_country_repository),
):
    if country.code.upper() != code.upper():
        raise HTTPException(status_code=400, detail=f"Country code mismatch. path={code}, body={country.code}")
    return await repository.update(country.model_copy(update={"code": code.upper()}))
