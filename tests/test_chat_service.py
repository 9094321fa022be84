"""Tests for the rule-based chat assistant."""

# pylint: disable=redefined-outer-name

from datetime import date
from decimal import Decimal

import pytest

from services import chat_service as chat
from services.chat_service import ChatService
from services.subscription_service import SubscriptionService
from tests.helpers import USER_ID

TODAY = date(2025, 6, 1)


@pytest.fixture
def assistant(repo) -> ChatService:
    return ChatService(subscriptions=SubscriptionService(repo=repo))


# =============================================================================
# INTENTS AND EXTRACTORS
# =============================================================================


class TestDetectIntent:
    @pytest.mark.parametrize(
        ("text", "intent"),
        [
            ("total per month", chat.TOTAL_MONTH),
            ("Totaal per maand?", chat.TOTAL_MONTH),
            ("totaal per jaar", chat.TOTAL_YEAR),
            ("what is my total per year", chat.TOTAL_YEAR),
            ("what is due within 14 days", chat.UPCOMING),
            ("wat vervalt binnenkort", chat.UPCOMING),
            ("mark netflix as paid", chat.MARK_PAID),
            ("markeer netflix als betaald", chat.MARK_PAID),
            ("add spotify 10,99 monthly", chat.ADD),
            ("voeg spotify 10,99 toe", chat.ADD),
            ("what do I save if I cancel netflix and spotify", chat.SAVINGS),
            ("wat bespaar ik als ik netflix en spotify opzeg", chat.SAVINGS),
            ("hello there", chat.HELP),
        ],
    )
    def test_detect_intent(self, text, intent):
        assert chat.detect_intent(text) == intent


class TestExtractors:
    def test_window(self):
        assert chat.extract_window("what is due within 14 days", 7) == 14
        assert chat.extract_window("binnen 3 dagen", 7) == 3
        assert chat.extract_window("what is due soon", 7) == 7

    def test_paid_name(self):
        assert chat.extract_paid_name("Mark Netflix as paid on 1/11") == "netflix"
        assert chat.extract_paid_name("markeer disney plus als betaald") == "disney plus"
        assert chat.extract_paid_name("mark as paid") is None

    @pytest.mark.parametrize(
        ("text", "name"),
        [
            ('add "Disney+" 8,99 monthly', "Disney+"),
            ("add Spotify Premium 10,99 monthly", "Spotify Premium"),
            ("voeg spotify 10,99 toe", "spotify"),
            ("add gym €30 per quarter", "gym"),
            ("add 9,99 monthly", None),
        ],
    )
    def test_add_name(self, text, name):
        assert chat.extract_add_name(text) == name

    def test_category(self):
        assert chat.extract_category("add gym 30 category Sport") == "Sport"
        assert chat.extract_category("voeg gym toe categorie: Sport & Health") == "Sport & Health"
        assert chat.extract_category("add gym 30") is None

    def test_savings_names(self):
        assert chat.extract_savings_names("What do I save if I cancel Netflix and Spotify?") == ["netflix", "spotify"]
        assert chat.extract_savings_names("wat bespaar ik als ik netflix, hbo en spotify opzeg") == [
            "netflix", "hbo", "spotify",
        ]
        assert chat.extract_savings_names("what would I save") == []


# =============================================================================
# REPLIES
# =============================================================================


class TestReply:
    def test_totals(self, assistant, make_sub, settings):
        make_sub("Netflix", "12", "monthly")
        make_sub("Spotify", "6", "monthly")
        assert assistant.reply(USER_ID, "total per month", settings, TODAY)["message"] == (
            "💶 You pay €18.00 per month."
        )
        assert "€216.00 per year" in assistant.reply(USER_ID, "totaal per jaar", settings, TODAY)["message"]

    def test_upcoming_uses_requested_window(self, assistant, make_sub, settings):
        make_sub("Netflix", "12", "monthly", due=date(2025, 6, 10))
        week = assistant.reply(USER_ID, "what is due", settings, TODAY)["message"]
        fortnight = assistant.reply(USER_ID, "what is due within 14 days", settings, TODAY)["message"]

        assert "Nothing due in the next 7 days" in week
        assert "Netflix - 10 Jun 2025 - €12.00/m" in fortnight

    def test_mark_paid(self, assistant, repo, make_sub, settings):
        sub = make_sub("Netflix", due=date(2025, 6, 10))
        reply = assistant.reply(USER_ID, "mark netflix as paid", settings, date(2025, 6, 10))

        assert reply["subscription"].next_due_date == date(2025, 7, 10)
        assert repo.rows[sub.id].next_due_date == date(2025, 7, 10)

    def test_mark_paid_with_explicit_date(self, assistant, repo, make_sub, settings):
        sub = make_sub("Netflix", due=date(2025, 1, 1))
        assistant.reply(USER_ID, "mark netflix as paid on 2025-04-15", settings, TODAY)
        assert repo.rows[sub.id].next_due_date == date(2025, 5, 1)

    def test_mark_paid_with_impossible_date_changes_nothing(self, assistant, repo, make_sub, settings):
        sub = make_sub("Netflix", due=date(2025, 5, 1))
        reply = assistant.reply(USER_ID, "mark netflix as paid on 31/2", settings, date(2025, 6, 15))

        assert reply["message"] == chat.BAD_DATE_TEXT
        assert "subscription" not in reply
        assert repo.rows[sub.id].next_due_date == date(2025, 5, 1)
        assert repo.rows[sub.id].last_paid_on is None

    def test_mark_paid_unknown_name(self, assistant, settings):
        reply = assistant.reply(USER_ID, "mark hbo as paid", settings, TODAY)
        assert "Which subscription" in reply["message"]
        assert "subscription" not in reply

    def test_add(self, assistant, repo, settings):
        reply = assistant.reply(
            USER_ID, "add spotify 10,99 monthly on 1/11 category Music", settings, TODAY
        )
        sub = reply["subscription"]
        assert (sub.name, sub.price, sub.next_due_date, sub.category) == (
            "spotify", Decimal("10.99"), date(2025, 11, 1), "Music",
        )
        assert len(repo.rows) == 1

    def test_add_defaults_to_monthly_today(self, assistant, settings):
        sub = assistant.reply(USER_ID, "voeg hbo 8 euro toe", settings, TODAY)["subscription"]
        assert sub.frequency.value == "monthly"
        assert sub.next_due_date == TODAY
        assert sub.price == Decimal("8")

    def test_add_with_impossible_date_is_not_saved(self, assistant, repo, settings):
        reply = assistant.reply(USER_ID, "add spotify 9,99 on 31/2", settings, TODAY)
        assert reply["message"] == chat.BAD_DATE_TEXT
        assert not repo.rows

    def test_add_uses_the_users_category_spelling(self, assistant, repo, settings):
        settings.categories = ["Music", "Streaming"]
        sub = assistant.reply(USER_ID, "add spotify 9,99 category music", settings, TODAY)["subscription"]
        assert sub.category == "Music"

    def test_add_without_price_asks(self, assistant, repo, settings):
        reply = assistant.reply(USER_ID, "add spotify monthly", settings, TODAY)
        assert "How much does spotify cost?" in reply["message"]
        assert not repo.rows

    def test_savings(self, assistant, make_sub, settings):
        make_sub("Netflix", "12", "monthly")
        make_sub("Spotify", "6", "monthly")
        make_sub("Gym", "30", "quarterly")
        reply = assistant.reply(USER_ID, "what do I save if I cancel netflix and spotify", settings, TODAY)
        assert reply["message"] == (
            "💡 Cancelling Netflix, Spotify saves €18.00 per month, €216.00 per year."
        )

    def test_savings_in_other_currency(self, assistant, make_sub, settings):
        make_sub("Netflix", "12", "monthly")
        settings.currency = "USD"
        reply = assistant.reply(USER_ID, "wat bespaar ik als ik netflix opzeg", settings, TODAY)
        assert "$12.00 per month" in reply["message"]

    def test_help_fallback(self, assistant, settings):
        assert assistant.reply(USER_ID, "hello", settings, TODAY)["message"] == chat.HELP_TEXT
