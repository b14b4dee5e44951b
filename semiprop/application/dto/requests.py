"""Request DTOs for use cases.

Pydantic v2 models validating caller input before any write.
"""

from datetime import date

from pydantic import BaseModel, Field

from semiprop.core.entities.inventory import ItemCondition, ItemStatus


class RegisterItemRequest(BaseModel):
    """Intake of a new semi-expendable item."""

    property_number: str = Field(
        ...,
        min_length=1,
        description="Unique property number",
        examples=["SPHV-2025-06-0001"],
    )
    description: str = Field(default="", description="Item description")
    condition: ItemCondition = Field(default=ItemCondition.SERVICEABLE)
    status: ItemStatus = Field(default=ItemStatus.ACTIVE)
    unit_cost: float = Field(default=0.0, ge=0, description="Cost per unit")
    quantity: int = Field(default=1, ge=1, description="Units received")
    date_acquired: date | None = Field(
        default=None, description="Acquisition date; defaults to today"
    )
    reference: str = Field(
        default="",
        description="Receiving document reference for the opening card entry",
        examples=["PO-2025-0142", "IAR-2025-033"],
    )
    entity_name: str | None = Field(
        default=None, description="Entity name printed on the property card"
    )
    fund_cluster: str | None = Field(default=None, description="Fund cluster code")
    create_card: bool | None = Field(
        default=None,
        description="Open a property card with a receipt entry (default from settings)",
    )


class SlipLineRequest(BaseModel):
    """One item to issue on a custodian slip."""

    item: str = Field(..., min_length=1, description="Inventory item id or property number")
    quantity: int = Field(default=1, ge=1)
    description: str | None = Field(default=None, description="Override item description")


class IssueSlipRequest(BaseModel):
    """Issue items to a custodian on an Inventory Custodian Slip."""

    slip_number: str | None = Field(
        default=None,
        description="Slip number; generated as ICS-<year>-<seq> when omitted",
        examples=["ICS-2025-0001"],
    )
    custodian_name: str = Field(..., min_length=1, description="Receiving custodian")
    designation: str = Field(default="", description="Custodian position")
    office: str = Field(default="", description="Custodian office")
    date_issued: date | None = Field(default=None, description="Defaults to today")
    issued_by: str = Field(default="")
    received_by: str = Field(default="")
    items: list[SlipLineRequest] = Field(..., min_length=1)
