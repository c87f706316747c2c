"""
Validation Engine: classifies a consignment into critical and moderate flags.

Critical flags block creation and drive automatic cancellation; moderate flags are
advisory. Classification is pure apart from reading the branch/coverage settings,
and memoized through the ``validation_flags`` cached on the record.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from django.conf import settings

# Critical
DUPLICATE_CN             = "duplicate_cn"
MISSING_CUSTOMER         = "missing_customer"
INVALID_MOBILE           = "invalid_mobile"
MISSING_DESTINATION_CITY = "missing_destination_city"
MISSING_COD_AMOUNT       = "missing_cod_amount"
INVALID_WEIGHT_OR_PIECES = "invalid_weight_or_pieces"
MISSING_SERVICE_TYPE     = "missing_service_type"

# Moderate
TEST_BOOKING_KEYWORD     = "test_booking_keyword"
LOW_COD_HIGH_WEIGHT      = "low_cod_high_weight"
MISMATCH_ORIGIN_CITY     = "mismatch_origin_city"
OUT_OF_COVERAGE_AREA     = "out_of_coverage_area"

# Creation screens the submitted payload; the sweep screens stored records.
CREATE = "create"
SWEEP  = "sweep"

# Input field each critical flag points at, for error responses
FLAG_FIELDS = {
    DUPLICATE_CN:             "consignment_number",
    MISSING_CUSTOMER:         "account_no",
    INVALID_MOBILE:           "consignee_mobile",
    MISSING_DESTINATION_CITY: "destination_city",
    MISSING_COD_AMOUNT:       "cod_amount",
    INVALID_WEIGHT_OR_PIECES: "weight",
    MISSING_SERVICE_TYPE:     "service_type",
}

MOBILE_PATTERN = re.compile(r"^[0-9]{11}$")
TEST_KEYWORDS  = re.compile(r"test|demo|trial", re.IGNORECASE)


@dataclass(frozen=True)
class ValidationFlags:
    critical: Tuple[str, ...] = ()
    moderate: Tuple[str, ...] = ()

    @property
    def is_blocking(self):
        return bool(self.critical)

    @property
    def is_clean(self):
        return not self.critical and not self.moderate

    def to_json(self):
        return {"critical_flags": list(self.critical), "moderate_flags": list(self.moderate)}

    @classmethod
    def from_json(cls, value) -> Optional["ValidationFlags"]:
        if value is None:
            return None
        return cls(
            critical=tuple(value.get("critical_flags") or ()),
            moderate=tuple(value.get("moderate_flags") or ()),
        )


def _blank(value):
    return value is None or not str(value).strip()


def _branch_city(branch_city):
    if branch_city is None:
        branch_city = getattr(settings, "COURIER_BRANCH_CITY", "")
    return (branch_city or "").strip().lower()


def _serviceable(cities):
    if cities is None:
        cities = getattr(settings, "COURIER_SERVICEABLE_CITIES", [])
    return {c.strip().lower() for c in cities if c and c.strip()}


def critical_flags(consignment, stage=SWEEP, duplicate=False, cod_supplied_null=False):
    flags = []
    if stage == CREATE and (duplicate or _blank(consignment.consignment_number)):
        flags.append(DUPLICATE_CN)

    if stage == CREATE:
        missing_customer = _blank(consignment.account_no)
    else:
        missing_customer = _blank(consignment.account_no) or _blank(consignment.agent_name)
    if missing_customer:
        flags.append(MISSING_CUSTOMER)

    mobile = consignment.consignee_mobile
    if mobile and not MOBILE_PATTERN.match(str(mobile).strip()):
        flags.append(INVALID_MOBILE)

    if _blank(consignment.destination_city):
        flags.append(MISSING_DESTINATION_CITY)

    cod = consignment.cod_amount
    if (cod is not None and cod <= 0) or (stage == CREATE and cod_supplied_null):
        flags.append(MISSING_COD_AMOUNT)

    weight, pieces = consignment.weight, consignment.pieces
    if (weight is not None and weight <= 0) or (pieces is not None and pieces <= 0):
        flags.append(INVALID_WEIGHT_OR_PIECES)

    # None at creation means "not supplied"; a stored record with no service type is incomplete
    service_type = consignment.service_type
    if stage == CREATE:
        missing_service = service_type is not None and _blank(service_type)
    else:
        missing_service = _blank(service_type)
    if missing_service:
        flags.append(MISSING_SERVICE_TYPE)

    return flags


def moderate_flags(consignment, branch_city=None, serviceable_cities=None):
    flags = []
    if consignment.remarks and TEST_KEYWORDS.search(consignment.remarks):
        flags.append(TEST_BOOKING_KEYWORD)

    cod, weight = consignment.cod_amount, consignment.weight
    if cod is not None and weight is not None and cod < 1 and weight > 10:
        flags.append(LOW_COD_HIGH_WEIGHT)

    branch = _branch_city(branch_city)
    origin = (consignment.origin_city or "").strip().lower()
    if branch and origin and origin != branch:
        flags.append(MISMATCH_ORIGIN_CITY)

    cities = _serviceable(serviceable_cities)
    destination = (consignment.destination_city or "").strip().lower()
    if cities and destination and destination not in cities:
        flags.append(OUT_OF_COVERAGE_AREA)

    return flags


def evaluate(consignment, stage=SWEEP, duplicate=False, cod_supplied_null=False,
             branch_city=None, serviceable_cities=None) -> ValidationFlags:
    """Compute flags from scratch, ignoring anything cached on the consignment."""
    return ValidationFlags(
        critical=tuple(critical_flags(consignment, stage, duplicate, cod_supplied_null)),
        moderate=tuple(moderate_flags(consignment, branch_city, serviceable_cities)),
    )


def classify(consignment, **options) -> ValidationFlags:
    """Return cached flags when the consignment carries them, else evaluate."""
    cached = ValidationFlags.from_json(consignment.validation_flags)
    if cached is not None:
        return cached
    return evaluate(consignment, stage=SWEEP, **options)


def screen_booking(consignment, duplicate=False, cod_supplied_null=False) -> ValidationFlags:
    return evaluate(consignment, stage=CREATE, duplicate=duplicate, cod_supplied_null=cod_supplied_null)


def summarize(consignments: Iterable) -> dict:
    """Counts used by the void listing: invalid (critical), flagged (moderate only), valid."""
    summary = {"total": 0, "invalid": 0, "flagged": 0, "valid": 0}
    for consignment in consignments:
        flags = classify(consignment)
        summary["total"] += 1
        if flags.critical:
            summary["invalid"] += 1
        elif flags.moderate:
            summary["flagged"] += 1
        else:
            summary["valid"] += 1
    return summary
