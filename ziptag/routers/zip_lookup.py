"""ZIP lookup router."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from ziptag.dependencies import get_resolver
from ziptag.errors import AmbiguousAddressError, InvalidZipError, ZipNotFoundError
from ziptag.schemas import PlaceOut, ResolvedMatch
from ziptag.services.zip_resolver import ZipResolver, validate_zip

router = APIRouter()


class ResolveResponse(BaseModel):
    """Places matching a ZIP code."""
    zip_code: str
    preferred: List[PlaceOut] = Field(..., description="The TrueList match, if any")
    others: List[PlaceOut] = Field(..., description="Other matches sorted by city")

    @classmethod
    def from_match(cls, match: ResolvedMatch) -> "ResolveResponse":
        return cls(
            zip_code=match.zip_code,
            preferred=[PlaceOut.from_place(p) for p in match.preferred],
            others=[PlaceOut.from_place(p) for p in match.others],
        )


class AddressResolveResponse(ResolveResponse):
    name: str = Field(..., description="Name guessed from the input")
    address: str = Field(..., description="Rest of the input after the name")


@router.get("/resolve", response_model=ResolveResponse)
def resolve_zip(
    zip: str = Query(..., description="5-digit ZIP code, ZIP+4 accepted"),
    resolver: ZipResolver = Depends(get_resolver)
):
    """
    Look up the California places covering a ZIP code.

    - **zip**: `90210` or `90210-1234`

    The TrueList hit is returned under `preferred`; other incorporated cities
    and census-designated places follow under `others`.
    """
    try:
        match = resolver.resolve(zip)
    except InvalidZipError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ZipNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ResolveResponse.from_match(match)


@router.get("/address", response_model=AddressResolveResponse)
def resolve_address(
    q: str = Query(..., min_length=5, description="Free-text name and address ending in a ZIP code"),
    resolver: ZipResolver = Depends(get_resolver)
):
    """
    Look up the places for the ZIP code at the end of an address.

    Example: `Jane Doe, 123 Main St, Malibu, CA 90265-1234`
    """
    try:
        resolution = resolver.resolve_address(q)
    except AmbiguousAddressError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except InvalidZipError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ZipNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    base = ResolveResponse.from_match(resolution.match)
    return AddressResolveResponse(
        **base.model_dump(),
        name=resolution.name,
        address=resolution.address,
    )


@router.get("/validate")
def check_zip(zip: str = Query(..., description="Value to check")):
    """Report whether a value is a well-formed ZIP code."""
    return {"zip": zip, "valid": validate_zip(zip)}
