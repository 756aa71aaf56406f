import sqlite3
from decimal import Decimal

import pytest

from remit_rates.core.errors import RateNotFoundError, RateValidationError
from remit_rates.services.rate_validation import DUPLICATE_PAIR_MESSAGE


def test_create_normalizes_provider_currency_and_rate(rate_service):
    record = rate_service.create(provider="wise", rate=280.5, currency="pkr")

    assert record.provider == "Wise"
    assert record.currency == "PKR"
    assert record.rate == Decimal("280.5000")
    assert record.rate_display == "280.5000 PKR"
    assert record.id is not None
    assert record.created_at is not None and record.updated_at is not None


def test_create_trims_and_title_cases_each_word(rate_service):
    record = rate_service.create(provider="  western   UNION ", rate="278.25", currency=" bdt ")

    assert record.provider == "Western Union"
    assert record.currency == "BDT"


@pytest.mark.parametrize("casing", ["Wise", "wise", "WISE", "  wIsE  "])
def test_duplicate_pair_rejected_case_insensitively(rate_service, make_rate, casing):
    make_rate(provider="Wise", rate=280.0, currency="PKR")

    with pytest.raises(RateValidationError) as exc_info:
        rate_service.create(provider=casing, rate=281.0, currency="pkr")

    assert exc_info.value.errors == [DUPLICATE_PAIR_MESSAGE]
    assert rate_service.rates().count() == 1
    assert rate_service.rates().first().rate == Decimal("280.0000")


def test_same_provider_may_quote_other_currencies(rate_service, make_rate):
    make_rate(provider="Wise", currency="PKR")
    make_rate(provider="wise", currency="INR", rate=83.25)

    assert rate_service.rates().by_provider("Wise").count() == 2


def test_validation_reports_every_broken_rule(rate_service):
    with pytest.raises(RateValidationError) as exc_info:
        rate_service.create(provider=None, rate=0, currency="USD")

    assert exc_info.value.errors == [
        "Provider can't be blank",
        "Rate must be greater than 0",
        "Currency USD is not a supported currency",
    ]


def test_blank_values_report_presence_errors(rate_service):
    with pytest.raises(RateValidationError) as exc_info:
        rate_service.create(provider="   ", rate=None, currency="")

    assert exc_info.value.errors == [
        "Provider can't be blank",
        "Rate can't be blank",
        "Currency can't be blank",
    ]


@pytest.mark.parametrize(
    "provider, message",
    [
        ("A", "Provider is too short (minimum is 2 characters)"),
        ("a" * 101, "Provider is too long (maximum is 100 characters)"),
    ],
)
def test_provider_length_bounds(rate_service, provider, message):
    with pytest.raises(RateValidationError) as exc_info:
        rate_service.create(provider=provider, rate=1, currency="PKR")

    assert exc_info.value.errors == [message]


def test_provider_length_bounds_are_inclusive(rate_service):
    assert rate_service.create(provider="ab", rate=1, currency="PKR").provider == "Ab"
    long_name = "b" * 100
    assert rate_service.create(provider=long_name, rate=1, currency="INR").provider == "B" + "b" * 99


@pytest.mark.parametrize("rate", ["abc", "nan", float("inf"), True])
def test_non_numeric_rate_rejected(rate_service, rate):
    with pytest.raises(RateValidationError) as exc_info:
        rate_service.create(provider="Wise", rate=rate, currency="PKR")

    assert exc_info.value.errors == ["Rate is not a number"]


@pytest.mark.parametrize("rate", [0, 0.0, -1, "-280.5", Decimal("-0.0001")])
def test_non_positive_rate_never_stored(rate_service, rate):
    with pytest.raises(RateValidationError) as exc_info:
        rate_service.create(provider="Wise", rate=rate, currency="PKR")

    assert exc_info.value.errors == ["Rate must be greater than 0"]
    assert rate_service.rates().count() == 0


def test_rate_rounded_half_up_to_four_places(rate_service):
    record = rate_service.create(provider="Wise", rate="280.12345", currency="PKR")

    assert record.rate == Decimal("280.1235")


def test_rate_that_rounds_to_zero_is_rejected(rate_service):
    with pytest.raises(RateValidationError) as exc_info:
        rate_service.create(provider="Wise", rate="0.00004", currency="PKR")

    assert exc_info.value.errors == [
        "Rate must be at least 0.0001 once rounded to 4 decimal places"
    ]
    assert rate_service.rates().count() == 0


def test_rounding_is_idempotent(rate_service, make_rate):
    record = make_rate(rate=Decimal("279.7512"))

    assert rate_service.get(record.id).rate == Decimal("279.7512")
    again = rate_service.update(record.id, {"rate": record.rate})
    assert again.rate == Decimal("279.7512")


@pytest.mark.parametrize("value", ["9999999999.9999", "1234567890.1234", "10000000000"])
def test_rounding_is_idempotent_for_widest_accepted_values(rate_service, make_rate, value):
    record = make_rate(rate=value)

    assert record.rate == Decimal(value)
    assert rate_service.get(record.id).rate == Decimal(value)
    assert rate_service.rates().values() == [Decimal(value).quantize(Decimal("0.0001"))]


@pytest.mark.parametrize("rate", [1e30, "10000000000.0001", Decimal("1E+40")])
def test_oversized_rate_rejected(rate_service, make_rate, rate):
    with pytest.raises(RateValidationError) as exc_info:
        rate_service.create(provider="Wise", rate=rate, currency="PKR")

    assert exc_info.value.errors == ["Rate is too large (maximum is 10000000000)"]
    assert rate_service.rates().count() == 0

    record = make_rate(provider="Xoom")
    with pytest.raises(RateValidationError):
        rate_service.update(record.id, {"rate": 1e30})
    assert rate_service.get(record.id).rate == record.rate


def test_update_replaces_only_given_fields(rate_service, make_rate):
    record = make_rate(provider="Wise", rate=280.0, currency="PKR")

    updated = rate_service.update(record.id, {"rate": 281.123456})

    assert updated.provider == "Wise"
    assert updated.currency == "PKR"
    assert updated.rate == Decimal("281.1235")


def test_update_normalizes_like_create(rate_service, make_rate):
    record = make_rate(provider="Wise", currency="PKR")

    updated = rate_service.update(record.id, {"provider": " remitly ", "currency": "inr"})

    assert updated.provider == "Remitly"
    assert updated.currency == "INR"


def test_update_may_recase_own_provider(rate_service, make_rate):
    record = make_rate(provider="Wise", currency="PKR")

    updated = rate_service.update(record.id, {"provider": "WISE"})

    assert updated.provider == "Wise"


def test_update_into_existing_pair_rejected(rate_service, make_rate):
    make_rate(provider="Wise", currency="PKR")
    other = make_rate(provider="Remitly", currency="PKR", rate=279.75)

    with pytest.raises(RateValidationError) as exc_info:
        rate_service.update(other.id, {"provider": "wise"})

    assert exc_info.value.errors == [DUPLICATE_PAIR_MESSAGE]
    assert rate_service.get(other.id).provider == "Remitly"


def test_update_with_blank_rate_reports_validation_error(rate_service, make_rate):
    record = make_rate()

    with pytest.raises(RateValidationError) as exc_info:
        rate_service.update(record.id, {"rate": None, "currency": "EUR"})

    assert exc_info.value.errors == [
        "Rate can't be blank",
        "Currency EUR is not a supported currency",
    ]


def test_update_rejects_unknown_fields(rate_service, make_rate):
    record = make_rate()

    with pytest.raises(ValueError, match="cannot update fields: id"):
        rate_service.update(record.id, {"id": 99})


def test_empty_update_returns_record_unchanged(rate_service, make_rate):
    record = make_rate()

    assert rate_service.update(record.id, {}) == record


def test_missing_ids_report_not_found(rate_service):
    with pytest.raises(RateNotFoundError):
        rate_service.get(42)
    with pytest.raises(RateNotFoundError):
        rate_service.update(42, {"rate": 1})
    with pytest.raises(RateNotFoundError):
        rate_service.delete(42)


def test_delete_removes_record_and_second_delete_is_not_found(rate_service, make_rate):
    record = make_rate()

    rate_service.delete(record.id)

    assert rate_service.rates().count() == 0
    with pytest.raises(RateNotFoundError):
        rate_service.delete(record.id)


def test_store_unique_index_ignores_provider_case(db):
    db.insert_rate("Wise", Decimal("280.0000"), "PKR")

    with pytest.raises(sqlite3.IntegrityError):
        db.insert_rate("wise", Decimal("281.0000"), "PKR")


def test_lost_race_on_unique_index_surfaces_as_duplicate(rate_service, make_rate, monkeypatch):
    make_rate(provider="Wise", currency="PKR")
    # Simulate a concurrent writer that inserted after our uniqueness check ran
    monkeypatch.setattr(rate_service.db, "provider_taken", lambda *a, **kw: False)

    with pytest.raises(RateValidationError) as exc_info:
        rate_service.create(provider="Wise", rate=290.0, currency="PKR")

    assert exc_info.value.errors == [DUPLICATE_PAIR_MESSAGE]
    assert rate_service.rates().count() == 1


def test_best_rate_for_and_average_rate_for(rate_service, make_rate):
    make_rate(provider="Wise", rate=280.0, currency="PKR")
    make_rate(provider="Remitly", rate=285.0, currency="PKR")
    make_rate(provider="Xoom", rate=279.0, currency="PKR")

    assert rate_service.best_rate_for("pkr").provider == "Remitly"
    assert rate_service.average_rate_for("PKR") == Decimal("281.3333")
    assert rate_service.best_rate_for("INR") is None
    assert rate_service.average_rate_for("INR") is None
