"""Shared fixtures for the test suite."""

# pylint: disable=redefined-outer-name

from datetime import date

import pytest

from models.subscription import Subscription
from models.user_settings import UserSettings
from tests.helpers import USER_ID, FakeSubscriptionRepository, FakeUserRepository


@pytest.fixture
def repo() -> FakeSubscriptionRepository:
    return FakeSubscriptionRepository()


@pytest.fixture
def user_repo() -> FakeUserRepository:
    return FakeUserRepository()


@pytest.fixture
def settings() -> UserSettings:
    return UserSettings()


@pytest.fixture
def make_sub(repo):
    """Insert a subscription straight into the fake repository."""

    def _make(name, price="9.99", frequency="monthly", due=date(2025, 6, 10), **kwargs):
        sub = Subscription(
            user_id=kwargs.pop("user_id", USER_ID),
            name=name,
            price=price,
            frequency=frequency,
            next_due_date=due,
            **kwargs,
        )
        return repo.add(sub)

    return _make
