"""Tagged transaction metadata stored alongside each transaction."""
import json
from decimal import Decimal
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, TypeAdapter


class TransferMetadata(BaseModel):
    """Details of an outgoing transfer.

    Only the last four digits of the destination account are ever kept.
    Unknown keys are preserved so newer clients can add fields.
    """

    model_config = ConfigDict(extra="allow")

    kind: Literal["transfer"] = "transfer"
    recipient_name: str
    recipient_email: EmailStr | None = None
    bank_name: str | None = None
    account_type: str | None = None
    account_last4: str = Field(..., pattern=r"^\d{1,4}$")
    routing_number: str | None = None
    transfer_amount: Decimal
    transfer_fee: Decimal
    transfer_purpose: str | None = None
    total_amount: Decimal


class OtherMetadata(BaseModel):
    """Free-form details for non-transfer entries (deposits, adjustments)."""

    kind: Literal["other"] = "other"
    details: dict[str, Any] = Field(default_factory=dict)


TransactionMetadata = Annotated[
    Union[TransferMetadata, OtherMetadata],
    Field(discriminator="kind"),
]

_adapter = TypeAdapter(TransactionMetadata)


def load_metadata(raw: str | None) -> TransferMetadata | OtherMetadata:
    """Parse stored JSON; untagged legacy dicts become ``OtherMetadata``."""
    data = json.loads(raw or "{}")
    if not isinstance(data, dict) or "kind" not in data:
        return OtherMetadata(details=data if isinstance(data, dict) else {"value": data})
    return _adapter.validate_python(data)


def dump_metadata(value: TransferMetadata | OtherMetadata) -> str:
    return value.model_dump_json()
