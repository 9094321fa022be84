"""Tests for command argument parsing in the Telegram handlers."""

from datetime import date, time
from decimal import Decimal

import pytest

from handlers.settings_handler import apply_setting, change_categories, describe
from handlers.subscription_handler import parse_add_args
from models.subscription import Frequency
from models.user_settings import UserSettings

TODAY = date(2025, 6, 1)


class TestParseAddArgs:
    def test_minimal_form_starts_one_period_from_today(self):
        assert parse_add_args("Netflix | 13,99 | monthly", TODAY) == {
            "name": "Netflix",
            "price": Decimal("13.99"),
            "frequency": Frequency.MONTHLY,
            "next_due_date": date(2025, 7, 1),
            "category": None,
        }

    def test_full_form(self):
        parsed = parse_add_args("Car insurance | 600 | jaarlijks | 1 maart 2026 | Insurance", TODAY)
        assert parsed["frequency"] is Frequency.YEARLY
        assert parsed["next_due_date"] == date(2026, 3, 1)
        assert parsed["category"] == "Insurance"

    def test_blank_date_uses_default(self):
        parsed = parse_add_args("Gym | 30 | quarterly |  | Sport", TODAY)
        assert parsed["next_due_date"] == date(2025, 9, 1)
        assert parsed["category"] == "Sport"

    @pytest.mark.parametrize(
        "text",
        [
            "netflix 13.99 a month",
            "Netflix | 13,99",
            " | 13,99 | monthly",
            "Netflix | cheap | monthly",
            "Netflix | 13,99 | daily",
            "Netflix | 13,99 | monthly | someday",
        ],
    )
    def test_not_structured(self, text):
        assert parse_add_args(text, TODAY) is None


class TestSettings:
    def test_change_each_setting(self):
        settings = UserSettings()
        assert apply_setting(settings, "currency", "usd").currency == "USD"
        assert apply_setting(settings, "lead", "7").lead_days == 7
        assert apply_setting(settings, "TIME", "8.30").reminder_time == time(8, 30)
        assert apply_setting(settings, "window", "14").window_days == 14
        # the input settings are left untouched
        assert settings == UserSettings()

    @pytest.mark.parametrize(
        ("key", "value"),
        [
            ("currency", "euro"),
            ("lead", "5"),
            ("lead", "soon"),
            ("time", "noon"),
            ("time", "25:00"),
            ("window", "-1"),
            ("colour", "blue"),
        ],
    )
    def test_invalid(self, key, value):
        with pytest.raises(ValueError):
            apply_setting(UserSettings(), key, value)

    def test_describe(self):
        text = describe(UserSettings(currency="GBP", lead_days=1, reminder_time=time(7, 5)))
        assert "Currency: GBP" in text
        assert "1 day before, at 07:05" in text
        assert "Due-soon window: 7 days" in text
        assert "on the due date" in describe(UserSettings(lead_days=0))


class TestCategories:
    CATEGORIES = ["Cloud", "Music", "Streaming"]

    def test_add_trims_and_sorts(self):
        result = change_categories(self.CATEGORIES, "add", "  gaming ")
        assert result == ["Cloud", "gaming", "Music", "Streaming"]
        assert self.CATEGORIES == ["Cloud", "Music", "Streaming"]

    @pytest.mark.parametrize("name", ["music", "MUSIC ", ""])
    def test_add_rejects_duplicates_and_blanks(self, name):
        with pytest.raises(ValueError):
            change_categories(self.CATEGORIES, "add", name)

    def test_delete_ignores_case(self):
        assert change_categories(self.CATEGORIES, "delete", "music") == ["Cloud", "Streaming"]

    def test_delete_unknown(self):
        with pytest.raises(ValueError):
            change_categories(self.CATEGORIES, "delete", "Gaming")

    def test_last_category_stays(self):
        with pytest.raises(ValueError):
            change_categories(["Other"], "delete", "Other")

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("Streaming 1", ["Streaming", "Cloud", "Music"]),
            ("cloud 3", ["Music", "Streaming", "Cloud"]),
            ("Cloud 99", ["Music", "Streaming", "Cloud"]),
            ("Music 0", ["Music", "Cloud", "Streaming"]),
        ],
    )
    def test_move(self, value, expected):
        assert change_categories(self.CATEGORIES, "move", value) == expected

    @pytest.mark.parametrize(
        ("action", "value"),
        [("move", "Cloud"), ("move", "Cloud first"), ("rename", "Cloud")],
    )
    def test_invalid(self, action, value):
        with pytest.raises(ValueError):
            change_categories(self.CATEGORIES, action, value)
