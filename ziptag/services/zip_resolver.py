"""ZIP code validation, address parsing and catalog lookups."""
import logging
import re
from typing import List, Optional

from ziptag.errors import AmbiguousAddressError, InvalidZipError, ZipNotFoundError
from ziptag.schemas import (
    AddressResolution,
    CatalogSource,
    NameAndAddress,
    Place,
    ResolvedMatch,
)
from ziptag.services.geo_catalog import GeoCatalog

logger = logging.getLogger(__name__)

ZIP_PATTERN = re.compile(r"^\d{5}(-\d{4})?$")
# Only non-digits may follow a ZIP at the end of an address
TRAILING_ZIP_PLUS4 = re.compile(r"(\b\d{5}-\d{4}\b)[^\d]*$")
TRAILING_ZIP = re.compile(r"(\b\d{5}\b)[^\d]*$")

MAX_NAME_WORDS = 8


def validate_zip(raw: Optional[str]) -> bool:
    """True for ``NNNNN`` or ``NNNNN-NNNN``, nothing else."""
    return bool(raw) and ZIP_PATTERN.fullmatch(raw) is not None


def find_zip_in_address(text: str) -> Optional[str]:
    """Return the 5-digit ZIP at the end of ``text``, or None."""
    clean = (text or "").strip()

    match = TRAILING_ZIP_PLUS4.search(clean)
    if match:
        return match.group(1).split("-")[0]

    match = TRAILING_ZIP.search(clean)
    return match.group(1) if match else None


def extract_zip_from_address(text: str) -> str:
    zip_code = find_zip_in_address(text)
    if zip_code is None:
        raise AmbiguousAddressError("No valid ZIP code found in the address")
    return zip_code


def extract_name_from_input(text: str) -> NameAndAddress:
    """
    Best-effort split of "name, address" style input.

    A comma (not in first position) splits name from address. Without one,
    inputs longer than two words use the first eight words as the name.
    """
    text = text or ""
    comma_index = text.find(",")
    if comma_index > 0:
        return NameAndAddress(
            name=text[:comma_index].strip(),
            address=text[comma_index + 1:].strip(),
        )

    words = text.split()
    if len(words) > 2:
        return NameAndAddress(
            name=" ".join(words[:MAX_NAME_WORDS]),
            address=" ".join(words[MAX_NAME_WORDS:]),
        )

    return NameAndAddress(name=text, address="")


def strip_name_prefix(full_address: str, name: str) -> str:
    """Remove a leading name (and optional comma) from the full input."""
    if not name:
        return full_address
    return re.sub(rf"^{re.escape(name)}\s*,?\s*", "", full_address, count=1)


def normalize_query_zip(raw: Optional[str]) -> str:
    """Strip whitespace and a -NNNN suffix, then validate."""
    zip_code = (raw or "").strip().split("-")[0]
    if not validate_zip(zip_code):
        raise InvalidZipError("Please enter a valid 5-digit ZIP code")
    return zip_code


class ZipResolver:
    """Resolves ZIP codes and addresses against a GeoCatalog."""

    def __init__(self, catalog: GeoCatalog):
        self.catalog = catalog

    def resolve(self, zip_code: str) -> ResolvedMatch:
        """
        Find the places covering a ZIP code.

        The first TrueList place containing the ZIP is the preferred match.
        Incorporated cities and then CDPs add every place whose (city, county)
        was not matched yet. The remainder is ordered by source priority and
        city name.
        """
        zip_code = normalize_query_zip(zip_code)

        preferred: List[Place] = []
        for place in self.catalog.partition(CatalogSource.TRUE_LIST):
            if zip_code in place.zip_codes:
                preferred.append(place)
                break

        seen = {place.key for place in preferred}
        others: List[Place] = []
        for source in (CatalogSource.INCORPORATED, CatalogSource.CDP):
            for place in self.catalog.partition(source):
                if zip_code in place.zip_codes and place.key not in seen:
                    seen.add(place.key)
                    others.append(place)

        if not preferred and not others:
            logger.debug("ZIP %s not in catalog", zip_code)
            raise ZipNotFoundError("ZIP code not found in our California database")

        others.sort(key=Place.sort_key)
        logger.debug(
            "ZIP %s resolved: preferred=%s others=%d",
            zip_code,
            preferred[0].city if preferred else None,
            len(others),
        )
        return ResolvedMatch(
            zip_code=zip_code,
            preferred=tuple(preferred),
            others=tuple(others),
        )

    def resolve_address(self, text: str) -> AddressResolution:
        """Extract the trailing ZIP from an address and resolve it."""
        zip_code = extract_zip_from_address(text)
        match = self.resolve(zip_code)
        parts = extract_name_from_input(text)
        return AddressResolution(
            zip_code=match.zip_code,
            name=parts.name,
            address=parts.address,
            match=match,
        )
