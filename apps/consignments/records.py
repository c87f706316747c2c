"""
Normalized consignment view over both record families.

Everything above the store (validation, assignment, returns, voiding, the API)
works with ``Consignment`` rather than the family models.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from apps.consignments.models import AgencyBooking, DirectBooking, Source

MANUAL_ACCOUNT = "MANUAL"
MANUAL_AGENT = "Manual Entry"
MANUAL_REMARKS = "Manual Booking"


@dataclass
class Consignment:
    consignment_number: str
    source: str
    status: str = "pending"
    account_no: Optional[str] = None
    agent_name: Optional[str] = None
    consignee_name: Optional[str] = None
    consignee_address: Optional[str] = None
    consignee_mobile: Optional[str] = None
    pieces: Optional[int] = None
    weight: Optional[Decimal] = None
    cod_amount: Optional[Decimal] = None
    destination_city: Optional[str] = None
    origin_city: Optional[str] = None
    service_type: Optional[str] = None
    reference_no: Optional[str] = None
    remarks: str = ""
    booking_date: Optional[datetime] = None
    delivery_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    validation_flags: Optional[Dict[str, Any]] = None
    record: Any = field(default=None, repr=False, compare=False)

    @classmethod
    def from_agency_booking(cls, booking: AgencyBooking) -> "Consignment":
        return cls(
            consignment_number=booking.consignment_number,
            source=Source.AGENCY,
            status=booking.status,
            account_no=booking.account_no,
            agent_name=booking.agent_name,
            consignee_name=booking.consignee_name,
            consignee_address=booking.consignee_address,
            consignee_mobile=booking.consignee_mobile,
            pieces=booking.pieces,
            weight=booking.weight,
            cod_amount=booking.cod_amount,
            destination_city=booking.destination_city,
            origin_city=booking.origin_city,
            service_type=booking.service_type,
            reference_no=booking.reference_no,
            remarks=booking.remarks,
            booking_date=booking.booking_date,
            delivery_date=booking.delivery_date,
            created_at=booking.created_at,
            updated_at=booking.updated_at,
            validation_flags=booking.validation_flags,
            record=booking,
        )

    @classmethod
    def from_direct_booking(cls, booking: DirectBooking) -> "Consignment":
        return cls(
            consignment_number=booking.consignment_number,
            source=Source.DIRECT,
            status=booking.status,
            account_no=MANUAL_ACCOUNT,
            agent_name=booking.created_by or MANUAL_AGENT,
            consignee_name=booking.consignee_name,
            consignee_address=booking.consignee_address,
            consignee_mobile=booking.consignee_mobile,
            pieces=booking.pieces,
            weight=booking.weight,
            cod_amount=booking.cod_amount,
            destination_city=booking.destination_city,
            origin_city=booking.origin_city,
            service_type=booking.service_type,
            reference_no=booking.customer_reference_no,
            remarks=booking.remarks or MANUAL_REMARKS,
            booking_date=booking.booked_on,
            delivery_date=booking.delivery_date,
            created_at=booking.created_at,
            updated_at=booking.updated_at,
            validation_flags=booking.validation_flags,
            record=booking,
        )

    @classmethod
    def from_record(cls, source, record) -> "Consignment":
        if source == Source.AGENCY:
            return cls.from_agency_booking(record)
        return cls.from_direct_booking(record)

    @classmethod
    def from_payload(cls, data: Dict[str, Any], source: str = Source.AGENCY) -> "Consignment":
        """Build an unsaved candidate from booking input; absent fields stay None."""
        return cls(
            consignment_number=data.get("consignment_number") or "",
            source=source,
            account_no=data.get("account_no"),
            agent_name=data.get("agent_name"),
            consignee_name=data.get("consignee_name"),
            consignee_address=data.get("consignee_address"),
            consignee_mobile=data.get("consignee_mobile"),
            pieces=data.get("pieces"),
            weight=data.get("weight"),
            cod_amount=data.get("cod_amount"),
            destination_city=data.get("destination_city"),
            origin_city=data.get("origin_city"),
            service_type=data.get("service_type"),
            reference_no=data.get("reference_no"),
            remarks=data.get("remarks") or "",
        )
