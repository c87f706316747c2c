"""
Validation Engine unit tests — no database needed.

Run:
    pytest tests/test_validation.py -v
"""

from decimal import Decimal
from unittest.mock import patch

import pytest

from apps.consignments import validation
from apps.consignments.records import Consignment
from apps.consignments.validation import CREATE, SWEEP, ValidationFlags


def _consignment(**overrides):
    fields = dict(
        consignment_number="CN100001",
        source="agency_booking",
        account_no="ACC1",
        agent_name="Agent One",
        consignee_mobile="03001234567",
        pieces=2,
        weight=Decimal("5"),
        cod_amount=Decimal("200"),
        destination_city="Lahore",
        origin_city="Lahore",
        service_type="overnight",
        remarks="",
    )
    fields.update(overrides)
    return Consignment(**fields)


# ═══════════════════════════════════════════════════════════════════════════════
# CRITICAL FLAGS
# ═══════════════════════════════════════════════════════════════════════════════

class TestCriticalFlags:

    def test_clean_consignment_has_no_flags(self):
        flags = validation.evaluate(_consignment())
        assert flags == ValidationFlags()
        assert flags.is_clean

    @pytest.mark.parametrize("field", ["account_no", "agent_name"])
    def test_missing_owner_is_missing_customer(self, field):
        flags = validation.evaluate(_consignment(**{field: ""}))
        assert validation.MISSING_CUSTOMER in flags.critical

    def test_creation_only_requires_account_no(self):
        flags = validation.evaluate(_consignment(agent_name=None), stage=CREATE)
        assert validation.MISSING_CUSTOMER not in flags.critical

    @pytest.mark.parametrize("mobile", [
        "0300123456", "030012345678", "0300-1234567", "abcdefghijk",
        "\u0660\u0663\u0660\u0660\u0661\u0662\u0663\u0664\u0665\u0666\u0667",  # Arabic-Indic digits
    ])
    def test_mobile_must_be_eleven_digits(self, mobile):
        flags = validation.evaluate(_consignment(consignee_mobile=mobile))
        assert validation.INVALID_MOBILE in flags.critical

    def test_absent_mobile_is_not_flagged(self):
        flags = validation.evaluate(_consignment(consignee_mobile=None))
        assert validation.INVALID_MOBILE not in flags.critical

    def test_missing_destination(self):
        flags = validation.evaluate(_consignment(destination_city="  "))
        assert validation.MISSING_DESTINATION_CITY in flags.critical

    @pytest.mark.parametrize("cod", [Decimal("0"), Decimal("-5")])
    def test_non_positive_cod(self, cod):
        flags = validation.evaluate(_consignment(cod_amount=cod))
        assert validation.MISSING_COD_AMOUNT in flags.critical

    def test_absent_cod_only_flagged_when_sent_as_null_at_creation(self):
        assert validation.MISSING_COD_AMOUNT not in validation.evaluate(_consignment(cod_amount=None)).critical
        flags = validation.screen_booking(_consignment(cod_amount=None), cod_supplied_null=True)
        assert validation.MISSING_COD_AMOUNT in flags.critical

    @pytest.mark.parametrize("weight,pieces", [(Decimal("0"), 1), (Decimal("2"), 0), (Decimal("-1"), -1)])
    def test_invalid_weight_or_pieces(self, weight, pieces):
        flags = validation.evaluate(_consignment(weight=weight, pieces=pieces))
        assert flags.critical.count(validation.INVALID_WEIGHT_OR_PIECES) == 1

    def test_service_type_blank_at_sweep(self):
        flags = validation.evaluate(_consignment(service_type=""), stage=SWEEP)
        assert validation.MISSING_SERVICE_TYPE in flags.critical

    def test_service_type_not_supplied_at_creation_passes(self):
        flags = validation.evaluate(_consignment(service_type=None), stage=CREATE)
        assert validation.MISSING_SERVICE_TYPE not in flags.critical

    def test_service_type_supplied_blank_at_creation_fails(self):
        flags = validation.evaluate(_consignment(service_type=""), stage=CREATE)
        assert validation.MISSING_SERVICE_TYPE in flags.critical

    def test_duplicate_only_on_creation_path(self):
        assert validation.DUPLICATE_CN not in validation.evaluate(_consignment(), duplicate=True).critical
        flags = validation.screen_booking(_consignment(), duplicate=True)
        assert flags.critical[0] == validation.DUPLICATE_CN

    def test_every_critical_flag_maps_to_a_field(self):
        consignment = _consignment(
            account_no="", consignee_mobile="12", destination_city="",
            cod_amount=Decimal("0"), weight=Decimal("0"), service_type="",
        )
        flags = validation.screen_booking(consignment, duplicate=True)
        assert set(flags.critical) == set(validation.FLAG_FIELDS)


# ═══════════════════════════════════════════════════════════════════════════════
# MODERATE FLAGS
# ═══════════════════════════════════════════════════════════════════════════════

class TestModerateFlags:

    @pytest.mark.parametrize("remarks", ["TEST booking", "please demo", "Trial run"])
    def test_test_keywords(self, remarks):
        flags = validation.evaluate(_consignment(remarks=remarks))
        assert validation.TEST_BOOKING_KEYWORD in flags.moderate
        assert not flags.critical

    def test_low_cod_high_weight(self):
        flags = validation.evaluate(_consignment(cod_amount=Decimal("0.5"), weight=Decimal("12")))
        assert validation.LOW_COD_HIGH_WEIGHT in flags.moderate

    def test_origin_city_mismatch_is_case_insensitive(self):
        assert validation.MISMATCH_ORIGIN_CITY not in validation.evaluate(_consignment(origin_city="LAHORE")).moderate
        flags = validation.evaluate(_consignment(origin_city="Karachi"))
        assert validation.MISMATCH_ORIGIN_CITY in flags.moderate

    def test_empty_branch_city_disables_origin_rule(self):
        flags = validation.evaluate(_consignment(origin_city="Karachi"), branch_city="")
        assert validation.MISMATCH_ORIGIN_CITY not in flags.moderate

    def test_out_of_coverage(self):
        flags = validation.evaluate(_consignment(destination_city="Quetta"))
        assert validation.OUT_OF_COVERAGE_AREA in flags.moderate

    def test_empty_coverage_list_disables_rule(self):
        flags = validation.evaluate(_consignment(destination_city="Quetta"), serviceable_cities=[])
        assert validation.OUT_OF_COVERAGE_AREA not in flags.moderate

    def test_moderate_flags_never_block(self):
        flags = validation.evaluate(_consignment(remarks="demo", destination_city="Quetta"))
        assert flags.moderate and not flags.is_blocking


# ═══════════════════════════════════════════════════════════════════════════════
# MEMOIZATION & SUMMARY
# ═══════════════════════════════════════════════════════════════════════════════

class TestClassify:

    def test_cached_flags_returned_without_recomputation(self):
        cached = {"critical_flags": ["missing_destination_city"], "moderate_flags": []}
        consignment = _consignment(validation_flags=cached)
        with patch("apps.consignments.validation.evaluate") as evaluate:
            first = validation.classify(consignment)
            second = validation.classify(consignment)
        evaluate.assert_not_called()
        assert first == second == ValidationFlags(critical=("missing_destination_city",))

    def test_empty_cached_flags_still_count_as_validated(self):
        consignment = _consignment(destination_city="", validation_flags={"critical_flags": [], "moderate_flags": []})
        assert validation.classify(consignment).is_clean

    def test_uncached_consignment_is_evaluated(self):
        flags = validation.classify(_consignment(destination_city=""))
        assert flags.critical == (validation.MISSING_DESTINATION_CITY,)

    def test_flags_json_shape(self):
        flags = ValidationFlags(critical=("invalid_mobile",), moderate=("test_booking_keyword",))
        assert flags.to_json() == {"critical_flags": ["invalid_mobile"], "moderate_flags": ["test_booking_keyword"]}
        assert ValidationFlags.from_json(flags.to_json()) == flags
        assert ValidationFlags.from_json(None) is None

    def test_summary_counts(self):
        rows = [
            _consignment(),
            _consignment(remarks="demo"),
            _consignment(destination_city=""),
            _consignment(destination_city="", remarks="test"),
        ]
        assert validation.summarize(rows) == {"total": 4, "invalid": 2, "flagged": 1, "valid": 1}
