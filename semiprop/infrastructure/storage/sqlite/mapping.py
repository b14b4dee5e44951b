"""
Declarative table <-> entity mappings.

Each persisted entity has exactly one ``TableMapping`` listing its columns
and how values convert between SQLite and the entity. Stores build their
INSERT/UPDATE statements and rebuild entities from rows through these
mappings, so a column name lives in one place. ``validate_mappings()`` checks
every mapping against its entity model and is called once when the stores
are wired.
"""

import json
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, get_args

from pydantic import BaseModel

from semiprop.core.entities import (
    AssignmentStatus,
    AuditLogEntry,
    CustodianSlip,
    CustodianSlipItem,
    InventoryItem,
    ItemCondition,
    ItemStatus,
    PropertyCard,
    SlipStatus,
    SPCEntry,
    Transfer,
    TransferHistoryEntry,
    TransferItem,
    TransferStatus,
    TransferType,
)
from semiprop.core.exceptions import ConfigurationError


def _parse_date(value: Any) -> date | None:
    if not value:
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def _parse_datetime(value: Any) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None


def _nullable(model: type[BaseModel], field_name: str) -> bool:
    annotation = model.model_fields[field_name].annotation
    return annotation is None or type(None) in get_args(annotation)


def _enum(enum_cls: type[Enum]) -> Callable[[Any], Any]:
    def parse(value: Any) -> Any:
        if value is None or value == "":
            return None
        return enum_cls(value)

    return parse


@dataclass(frozen=True)
class Column:
    """One column and its conversion rules."""

    name: str
    attr: str | None = None
    kind: str = "text"  # text | int | real | date | datetime | json | enum
    parse: Callable[[Any], Any] | None = None

    @property
    def field(self) -> str:
        return self.attr or self.name

    def to_db(self, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, Enum):
            return value.value
        if self.kind in ("date", "datetime"):
            return value.isoformat()
        if self.kind == "json":
            return json.dumps(value)
        return value

    def from_db(self, value: Any) -> Any:
        if self.parse is not None:
            return self.parse(value)
        if self.kind == "date":
            return _parse_date(value)
        if self.kind == "datetime":
            return _parse_datetime(value)
        if self.kind == "json":
            return json.loads(value) if value else {}
        if value is None:
            return None
        if self.kind == "int":
            return int(value)
        if self.kind == "real":
            return float(value)
        return value


@dataclass(frozen=True)
class TableMapping:
    """Column list for one table and the entity it stores."""

    table: str
    model: type[BaseModel]
    columns: tuple[Column, ...]
    key: str = "id"
    generated_key: bool = False  # INTEGER PRIMARY KEY AUTOINCREMENT

    @property
    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]

    def _writable(self) -> list[Column]:
        if self.generated_key:
            return [c for c in self.columns if c.name != self.key]
        return list(self.columns)

    def insert_sql(self) -> str:
        cols = self._writable()
        names = ", ".join(c.name for c in cols)
        marks = ", ".join("?" for _ in cols)
        return f"INSERT INTO {self.table} ({names}) VALUES ({marks})"

    def insert_params(self, entity: BaseModel) -> tuple[Any, ...]:
        return tuple(c.to_db(getattr(entity, c.field)) for c in self._writable())

    def update_sql(self, columns: Iterable[str] | None = None) -> str:
        names = list(columns) if columns is not None else [
            c.name for c in self.columns if c.name not in (self.key, "created_at")
        ]
        assignments = ", ".join(f"{n} = ?" for n in names)
        return f"UPDATE {self.table} SET {assignments} WHERE {self.key} = ?"

    def update_params(self, entity: BaseModel, columns: Iterable[str] | None = None) -> tuple[Any, ...]:
        names = list(columns) if columns is not None else [
            c.name for c in self.columns if c.name not in (self.key, "created_at")
        ]
        by_name = {c.name: c for c in self.columns}
        values = [by_name[n].to_db(getattr(entity, by_name[n].field)) for n in names]
        key_col = by_name[self.key]
        values.append(key_col.to_db(getattr(entity, key_col.field)))
        return tuple(values)

    def from_row(self, row: Mapping[str, Any], **extra: Any) -> Any:
        """Build the entity from a row; columns missing from the row are skipped."""
        keys = set(row.keys())
        data: dict[str, Any] = {}
        for column in self.columns:
            if column.name not in keys:
                continue
            value = column.from_db(row[column.name])
            if value is None and not _nullable(self.model, column.field):
                continue  # NULL in a legacy row: let the model default apply
            data[column.field] = value
        data.update(extra)
        return self.model(**data)

    def validate(self) -> None:
        fields = self.model.model_fields
        missing = [c.field for c in self.columns if c.field not in fields]
        if missing:
            raise ConfigurationError(
                f"Mapping for {self.table} names unknown fields of "
                f"{self.model.__name__}: {', '.join(missing)}"
            )
        if self.key not in self.column_names:
            raise ConfigurationError(f"Mapping for {self.table} lacks key column {self.key}")


INVENTORY_ITEMS = TableMapping(
    table="inventory_items",
    model=InventoryItem,
    columns=(
        Column("id"),
        Column("property_number"),
        Column("description"),
        Column("condition", kind="enum", parse=_enum(ItemCondition)),
        Column("status", kind="enum", parse=_enum(ItemStatus)),
        Column("unit_cost", kind="real"),
        Column("quantity", kind="int"),
        Column("total_cost", kind="real"),
        Column("assignment_status", kind="enum", parse=_enum(AssignmentStatus)),
        Column("custodian"),
        Column("custodian_position"),
        Column("assigned_date", kind="date"),
        Column("created_at", kind="datetime"),
        Column("updated_at", kind="datetime"),
    ),
)

PROPERTY_CARDS = TableMapping(
    table="property_cards",
    model=PropertyCard,
    columns=(
        Column("id"),
        Column("inventory_item_id"),
        Column("property_number"),
        Column("entity_name"),
        Column("fund_cluster"),
        Column("description"),
        Column("date_acquired", kind="date"),
        Column("remarks"),
        Column("created_at", kind="datetime"),
        Column("updated_at", kind="datetime"),
    ),
)

PROPERTY_CARD_ENTRIES = TableMapping(
    table="property_card_entries",
    model=SPCEntry,
    columns=(
        Column("id"),
        Column("property_card_id"),
        Column("line_no", kind="int"),
        Column("date", kind="date"),
        Column("reference"),
        Column("receipt_qty", kind="int"),
        Column("unit_cost", kind="real"),
        Column("total_cost", kind="real"),
        Column("issue_item_no"),
        Column("issue_qty", kind="int"),
        Column("office_officer"),
        Column("balance_qty", kind="int"),
        Column("amount", kind="real"),
        Column("remarks"),
        Column("related_transfer_id"),
        Column("related_slip_id"),
        Column("created_at", kind="datetime"),
        Column("updated_at", kind="datetime"),
    ),
)

CUSTODIAN_SLIPS = TableMapping(
    table="custodian_slips",
    model=CustodianSlip,
    columns=(
        Column("id"),
        Column("slip_number"),
        Column("custodian_name"),
        Column("designation"),
        Column("office"),
        Column("date_issued", kind="date"),
        Column("issued_by"),
        Column("received_by"),
        Column("slip_status", kind="enum", parse=_enum(SlipStatus)),
        Column("created_at", kind="datetime"),
        Column("updated_at", kind="datetime"),
    ),
)

CUSTODIAN_SLIP_ITEMS = TableMapping(
    table="custodian_slip_items",
    model=CustodianSlipItem,
    columns=(
        Column("id"),
        Column("slip_id"),
        Column("inventory_item_id"),
        Column("property_card_entry_id"),
        Column("property_number"),
        Column("description"),
        Column("quantity", kind="int"),
        Column("unit_cost", kind="real"),
        Column("total_cost", kind="real"),
        Column("date_issued", kind="date"),
        Column("created_at", kind="datetime"),
    ),
)

PROPERTY_TRANSFERS = TableMapping(
    table="property_transfers",
    model=Transfer,
    columns=(
        Column("id"),
        Column("transfer_number"),
        Column("entity_name"),
        Column("fund_cluster"),
        Column("from_custodian"),
        Column("from_position"),
        Column("to_custodian"),
        Column("to_position"),
        Column("transfer_type", kind="enum", parse=_enum(TransferType)),
        Column("status", kind="enum", parse=TransferStatus.parse),
        Column("requested_by"),
        Column("approved_by"),
        Column("date_requested", kind="date"),
        Column("date_approved", kind="date"),
        Column("date_completed", kind="date"),
        Column("reason"),
        Column("remarks"),
        Column("created_at", kind="datetime"),
        Column("updated_at", kind="datetime"),
    ),
)

TRANSFER_ITEMS = TableMapping(
    table="transfer_items",
    model=TransferItem,
    columns=(
        Column("id"),
        Column("transfer_id"),
        Column("inventory_item_id"),
        Column("custodian_slip_item_id"),
        Column("property_number"),
        Column("description"),
        Column("quantity", kind="int"),
        Column("condition"),
        Column("created_at", kind="datetime"),
    ),
)

TRANSFER_HISTORY = TableMapping(
    table="transfer_history",
    model=TransferHistoryEntry,
    columns=(
        Column("id", kind="int"),
        Column("transfer_id"),
        Column("status", kind="enum", parse=TransferStatus.parse),
        Column("action"),
        Column("details"),
        Column("actor"),
        Column("created_at", kind="datetime"),
    ),
    generated_key=True,
)

AUDIT_LOG = TableMapping(
    table="audit_log",
    model=AuditLogEntry,
    columns=(
        Column("id", kind="int"),
        Column("user_id"),
        Column("action"),
        Column("table_name"),
        Column("record_id"),
        Column("details_json", attr="details", kind="json"),
        Column("created_at", kind="datetime"),
    ),
    generated_key=True,
)

ALL_MAPPINGS: tuple[TableMapping, ...] = (
    INVENTORY_ITEMS,
    PROPERTY_CARDS,
    PROPERTY_CARD_ENTRIES,
    CUSTODIAN_SLIPS,
    CUSTODIAN_SLIP_ITEMS,
    PROPERTY_TRANSFERS,
    TRANSFER_ITEMS,
    TRANSFER_HISTORY,
    AUDIT_LOG,
)


def validate_mappings() -> None:
    """Check every mapping against its entity model."""
    for mapping in ALL_MAPPINGS:
        mapping.validate()
