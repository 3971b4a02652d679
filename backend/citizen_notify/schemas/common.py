"""
Citizen Notify — Shared Schema Types
====================================

What:  Constrained string types and the document mixins every entity shape
       builds on.
How:   Stored JSON uses camelCase names (`fiscalCode`); Python code uses
       snake_case (`fiscal_code`). `CamelModel` maps between the two and
       accepts either form on input.

Shape layering for an entity X:
    X             base shape: the entity's own fields
    NewX          X + id + version           (what create() writes)
    RetrievedX    X + id + version + _self/_ts/_etag (what the store returns)

NewX and RetrievedX carry a `kind` discriminant for type narrowing only.
It is excluded from serialization and so never reaches the store.
"""

import re
from enum import Enum
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

FISCAL_CODE_PATTERN = (
    r"^[A-Z]{6}[0-9LMNPQRSTUV]{2}[ABCDEHLMPRST][0-9LMNPQRSTUV]{2}"
    r"[A-Z][0-9LMNPQRSTUV]{3}[A-Z]$"
)

# Deliberately loose: local@domain.tld
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

NonEmptyString = Annotated[str, StringConstraints(min_length=1)]
FiscalCode = Annotated[str, StringConstraints(pattern=FISCAL_CODE_PATTERN)]
EmailString = Annotated[str, StringConstraints(pattern=EMAIL_PATTERN)]

_fiscal_code_re = re.compile(FISCAL_CODE_PATTERN)


def is_fiscal_code(value: object) -> bool:
    return isinstance(value, str) and _fiscal_code_re.match(value) is not None


class PreferredLanguage(str, Enum):
    IT_IT = "it_IT"
    EN_GB = "en_GB"
    ES_ES = "es_ES"
    DE_DE = "de_DE"
    FR_FR = "fr_FR"


class BlockedInboxOrChannel(str, Enum):
    INBOX = "INBOX"
    EMAIL = "EMAIL"
    WEBHOOK = "WEBHOOK"


class CamelModel(BaseModel):
    """Base for all entity shapes: camelCase on the wire, immutable in memory."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class NewDocumentFields(CamelModel):
    """Fields the versioned model assigns before writing."""

    id: NonEmptyString
    version: int = Field(ge=0)


class RetrievedDocumentFields(NewDocumentFields):
    """Store metadata present on every document read back."""

    self_link: Optional[str] = Field(default=None, alias="_self")
    ts: Optional[int] = Field(default=None, alias="_ts")
    etag: Optional[str] = Field(default=None, alias="_etag")
