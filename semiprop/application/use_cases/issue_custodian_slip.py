"""Issue Custodian Slip Use Case: hand unassigned items to a custodian."""

from dataclasses import dataclass, field
from datetime import date

from semiprop.application.dto.requests import IssueSlipRequest
from semiprop.config import get_logger
from semiprop.core.entities.audit import ChangeAction
from semiprop.core.entities.custodian_slip import CustodianSlip, CustodianSlipItem, SlipStatus
from semiprop.core.entities.inventory import InventoryItem
from semiprop.core.exceptions import DuplicateSlipNumberError, ValidationError
from semiprop.core.interfaces.custodian_slip_store import ICustodianSlipStore
from semiprop.core.interfaces.transaction import ITransactionManager
from semiprop.core.services.change_recorder import ChangeRecorder
from semiprop.core.services.custody_registry import CustodyRegistry
from semiprop.core.services.item_resolver import ItemResolver
from semiprop.core.services.numbering import DocumentNumberAllocator

logger = get_logger(__name__)


@dataclass
class IssueSlipResult:
    """Result of issuing a custodian slip."""

    slip: CustodianSlip
    assigned: list[InventoryItem] = field(default_factory=list)


class IssueCustodianSlipUseCase:
    """
    Write an ICS and assign each listed item to its custodian.

    Items must be unheld; handing an item from one custodian to another
    goes through a transfer instead.
    """

    def __init__(
        self,
        slip_store: ICustodianSlipStore,
        registry: CustodyRegistry,
        resolver: ItemResolver,
        slip_numbers: DocumentNumberAllocator,
        transactions: ITransactionManager,
        recorder: ChangeRecorder | None = None,
    ):
        self._slips = slip_store
        self._registry = registry
        self._resolver = resolver
        self._slip_numbers = slip_numbers
        self._tx = transactions
        self._recorder = recorder or ChangeRecorder(transactions)

    async def execute(self, request: IssueSlipRequest, actor: str = "") -> IssueSlipResult:
        """Execute slip issuance."""
        issued = request.date_issued or date.today()
        custodian = request.custodian_name.strip()
        logger.info(
            "issue_slip_started",
            custodian=custodian,
            items=len(request.items),
        )

        async with self._tx.transaction():
            assigned: list[InventoryItem] = []
            lines: list[CustodianSlipItem] = []
            seen: set[str] = set()

            for line in request.items:
                item = await self._resolver.require_item(line.item)
                if item.id in seen:
                    raise ValidationError("items", "item listed more than once", item.property_number)
                seen.add(item.id)

                # "" = must not be held by anyone yet
                item = await self._registry.assign(
                    item.id,
                    custodian,
                    request.designation,
                    issued,
                    expected_custodian="",
                    actor=actor,
                )
                assigned.append(item)
                lines.append(
                    CustodianSlipItem(
                        inventory_item_id=item.id,
                        property_number=item.property_number,
                        description=line.description or item.description,
                        quantity=line.quantity,
                        unit_cost=item.unit_cost,
                        date_issued=issued,
                    )
                )

            async def insert(number: str) -> CustodianSlip:
                return await self._slips.create_slip(
                    CustodianSlip(
                        slip_number=number,
                        custodian_name=custodian,
                        designation=request.designation,
                        office=request.office,
                        date_issued=issued,
                        issued_by=request.issued_by,
                        received_by=request.received_by or custodian,
                        slip_status=SlipStatus.ISSUED,
                        items=[line.model_copy() for line in lines],
                    )
                )

            if request.slip_number:
                slip = await insert(request.slip_number)
                self._slip_numbers.remember(slip.slip_number)
            else:
                slip = await self._slip_numbers.insert_with_number(
                    issued.year, insert, DuplicateSlipNumberError
                )

            await self._recorder.record(
                actor,
                ChangeAction.CREATE,
                "custodian_slips",
                slip.id,
                slip_number=slip.slip_number,
                custodian=custodian,
            )

        logger.info(
            "issue_slip_complete",
            slip_id=slip.id,
            slip_number=slip.slip_number,
            custodian=custodian,
            items=len(assigned),
        )
        return IssueSlipResult(slip=slip, assigned=assigned)
