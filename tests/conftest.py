# SPDX-License-Identifier: MIT
from __future__ import annotations

import pytest

from domain import Account, ExchangeCredentials
from tests.fakes import FakeHandle, FakeSessions, RecordingExecutor


@pytest.fixture
def account() -> Account:
    return Account(
        account_id="acc-1",
        exchange="binance",
        credentials=ExchangeCredentials(api_key="key", api_secret="secret"),
    )


@pytest.fixture
def handle() -> FakeHandle:
    return FakeHandle()


@pytest.fixture
def sessions(handle: FakeHandle) -> FakeSessions:
    return FakeSessions(handle)


@pytest.fixture
def executor(handle: FakeHandle) -> RecordingExecutor:
    return RecordingExecutor(handle=handle)
