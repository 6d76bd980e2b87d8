"""Person directory construction."""

from __future__ import annotations

import logging
from typing import Sequence

from ..core.models import PersonDirectory
from ..providers.contracts import DirectoryProvider

LOGGER = logging.getLogger(__name__)

CONTACT_FIELDS: Sequence[str] = ("names", "emailAddresses")


async def build_person_directory(provider: DirectoryProvider) -> PersonDirectory:
    contacts = await provider.list_contacts(CONTACT_FIELDS)
    directory = PersonDirectory.from_contacts(contacts)
    LOGGER.info("Built person directory with %s addresses from %s contacts.", len(directory), len(contacts))
    return directory
