"""
Profile shapes.

A citizen's profile, one logical entity per fiscal code. The fiscal code is
both the logical id and the partition key.
"""

from typing import Dict, List, Literal, Optional

from pydantic import Field

from citizen_notify.schemas.common import (
    BlockedInboxOrChannel,
    CamelModel,
    EmailString,
    FiscalCode,
    NewDocumentFields,
    PreferredLanguage,
    RetrievedDocumentFields,
)

PROFILE_MODEL_ID_FIELD = "fiscalCode"
PROFILE_MODEL_PK_FIELD = "fiscalCode"


class Profile(CamelModel):
    fiscal_code: FiscalCode
    email: Optional[EmailString] = None
    preferred_languages: Optional[List[PreferredLanguage]] = None
    is_inbox_enabled: bool = False
    is_webhook_enabled: bool = False
    # service id -> channels the citizen blocked for that service
    blocked_inbox_or_channels: Optional[Dict[str, List[BlockedInboxOrChannel]]] = None
    accepted_tos_version: Optional[int] = Field(default=None, ge=0)


class NewProfile(Profile, NewDocumentFields):
    kind: Literal["NewProfile"] = Field(default="NewProfile", exclude=True)


class RetrievedProfile(Profile, RetrievedDocumentFields):
    kind: Literal["RetrievedProfile"] = Field(default="RetrievedProfile", exclude=True)
