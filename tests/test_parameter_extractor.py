"""Tests for typed parameter extraction."""

import pytest

from intents.models import ParameterKind, ParameterSpec, ParameterValidation
from intents.parameter_extractor import ParameterExtractor


@pytest.fixture
def extractor():
    return ParameterExtractor()


def spec(kind, **kwargs):
    validation = kwargs.pop("validation", ParameterValidation())
    return ParameterSpec(name="value", kind=kind, validation=validation, **kwargs)


# ── Numbers ───────────────────────────────────────────

class TestNumber:
    def test_integer(self, extractor):
        assert extractor.extract("pay 250 now", spec(ParameterKind.NUMBER)) == 250

    def test_decimal(self, extractor):
        assert extractor.extract("amount is 49.99", spec(ParameterKind.NUMBER)) == 49.99

    def test_first_match_wins(self, extractor):
        assert extractor.extract("3 or 4", spec(ParameterKind.NUMBER)) == 3

    def test_below_minimum_rejected(self, extractor):
        bounded = spec(ParameterKind.NUMBER, validation=ParameterValidation(min_value=15, max_value=240))
        assert extractor.extract("12", bounded) is None

    def test_above_maximum_rejected(self, extractor):
        bounded = spec(ParameterKind.NUMBER, validation=ParameterValidation(max_value=100))
        assert extractor.extract("250", bounded) is None

    def test_absent(self, extractor):
        assert extractor.extract("no digits", spec(ParameterKind.NUMBER)) is None


# ── Pattern kinds ─────────────────────────────────────

class TestPatterns:
    def test_email(self, extractor):
        assert extractor.extract("mail jo@example.com please", spec(ParameterKind.EMAIL)) == "jo@example.com"

    def test_phone(self, extractor):
        assert extractor.extract("call 555-123-4567", spec(ParameterKind.PHONE)) == "555-123-4567"

    def test_phone_without_separators(self, extractor):
        assert extractor.extract("call 5551234567", spec(ParameterKind.PHONE)) == "5551234567"

    def test_date(self, extractor):
        assert extractor.extract("on 12/05/2026 please", spec(ParameterKind.DATE)) == "12/05/2026"

    def test_date_with_dashes(self, extractor):
        assert extractor.extract("since 1-2-24", spec(ParameterKind.DATE)) == "1-2-24"

    def test_time_with_meridiem(self, extractor):
        assert extractor.extract("at 10:30 am", spec(ParameterKind.TIME)) == "10:30 am"

    def test_time_24h(self, extractor):
        assert extractor.extract("around 14:00", spec(ParameterKind.TIME)) == "14:00"

    def test_time_case_insensitive(self, extractor):
        assert extractor.extract("at 9:15PM", spec(ParameterKind.TIME)) == "9:15PM"


# ── Booleans ──────────────────────────────────────────

class TestBoolean:
    def test_positive(self, extractor):
        assert extractor.extract("Yes, that's right", spec(ParameterKind.BOOLEAN)) is True

    def test_negative(self, extractor):
        assert extractor.extract("no thanks", spec(ParameterKind.BOOLEAN)) is False

    def test_positive_checked_first(self, extractor):
        assert extractor.extract("no wait, ok", spec(ParameterKind.BOOLEAN)) is True

    def test_whole_words_only(self, extractor):
        assert extractor.extract("I know nothing", spec(ParameterKind.BOOLEAN)) is None


# ── Strings ───────────────────────────────────────────

class TestString:
    def test_example_match_returns_declared_form(self, extractor):
        s = spec(ParameterKind.STRING, examples=["Connectivity", "speed"])
        assert extractor.extract("my connectivity keeps dropping", s) == "Connectivity"

    def test_pattern_fallback(self, extractor):
        s = spec(ParameterKind.STRING, validation=ParameterValidation(pattern=r"\b[A-Z]{3}\d{6}\b"))
        assert extractor.extract("account XYZ987654 please", s) == "XYZ987654"

    def test_no_match(self, extractor):
        s = spec(ParameterKind.STRING, examples=["speed"])
        assert extractor.extract("something else", s) is None

    def test_length_bounds(self, extractor):
        s = spec(ParameterKind.STRING, examples=["ab"], validation=ParameterValidation(min_length=3))
        assert extractor.extract("ab", s) is None


class TestExtractAll:
    def test_only_present_values(self, extractor):
        specs = [
            ParameterSpec(name="date", kind=ParameterKind.DATE),
            ParameterSpec(name="time", kind=ParameterKind.TIME),
            ParameterSpec(name="email", kind=ParameterKind.EMAIL),
        ]
        assert extractor.extract_all("12/05/2026 at 10:30", specs) == {"date": "12/05/2026", "time": "10:30"}

    def test_every_kind_supported(self):
        assert set(ParameterExtractor.supported_kinds()) == set(ParameterKind)
