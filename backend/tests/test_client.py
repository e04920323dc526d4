"""
PortfolioClient tests: the full write/read protocol against the real API
"""

import math

import pytest
from fastapi.testclient import TestClient

from privatefolio.client import PortfolioClient
from privatefolio.crypto import AuthenticationFailure, FieldCodec, FieldState, InvalidInput, SessionLocked, is_encrypted
from privatefolio.main import app
from privatefolio.models import Asset, Portfolio


@pytest.fixture
def alice(client):
    api = PortfolioClient(client)
    api.register("alice", "p1")
    return api


@pytest.fixture
def portfolio_id(alice):
    return alice.create_portfolio("Main")["id"]


def test_register_unlocks_session(alice):
    assert alice.is_authenticated
    assert alice.username == "alice"
    assert alice.encryption.is_unlocked


def test_unlocked_writes_are_encrypted_at_rest(alice, portfolio_id, db_session):
    alice.add_asset(portfolio_id, "BTC", 0.5, 30000)

    asset = db_session.query(Asset).filter_by(symbol="BTC").first()
    assert is_encrypted(asset.quantity)
    assert is_encrypted(asset.cost_basis)
    assert "30000" not in asset.cost_basis


def test_read_decrypts_and_totals(alice, portfolio_id):
    alice.add_asset(portfolio_id, "BTC", 0.5, 30000)
    alice.add_asset(portfolio_id, "AAPL", 10, 150.5)

    view = alice.get_portfolio(portfolio_id)

    assert view.name == "Main"
    assert view.currency == "USD"
    by_symbol = {a.symbol: a for a in view.assets}
    assert by_symbol["BTC"].quantity.value == 0.5
    assert by_symbol["BTC"].cost_basis.state is FieldState.DECRYPTED
    assert by_symbol["AAPL"].cost_basis.display == "150.5"
    assert view.total_cost == pytest.approx(0.5 * 30000 + 10 * 150.5)
    assert view.locked_count == 0


def test_locked_writes_fall_back_to_plaintext(alice, portfolio_id, db_session):
    alice.lock()
    alice.add_asset(portfolio_id, "ETH", 2, 1800.0)

    asset = db_session.query(Asset).filter_by(symbol="ETH").first()
    assert asset.quantity == 2
    assert asset.cost_basis == 1800.0

    view = alice.get_portfolio(portfolio_id)
    assert view.assets[0].quantity.state is FieldState.PLAIN
    assert not view.assets[0].is_encrypted


def test_strict_mode_refuses_locked_writes(client, db_session):
    api = PortfolioClient(client, strict_writes=True)
    api.register("carol", "secret")
    portfolio_id = api.create_portfolio("Main")["id"]
    api.lock()

    with pytest.raises(SessionLocked):
        api.add_asset(portfolio_id, "ETH", 1, 1)
    assert db_session.query(Asset).count() == 0


def test_locked_session_renders_encrypted_fields_as_locked(alice, portfolio_id):
    alice.add_asset(portfolio_id, "BTC", 1, 20000)
    alice.lock()
    alice.add_asset(portfolio_id, "CASH", 100, 1)

    view = alice.get_portfolio(portfolio_id)
    by_symbol = {a.symbol: a for a in view.assets}

    assert by_symbol["BTC"].quantity.display == "LOCKED"
    assert by_symbol["BTC"].cost is None
    assert by_symbol["CASH"].quantity.display == "100"
    assert view.locked_count == 1
    assert view.total_cost == 100


def test_wrong_unlock_password_degrades_to_locked(alice, portfolio_id):
    alice.add_asset(portfolio_id, "BTC", 1, 20000)

    alice.unlock("not-my-password")
    view = alice.get_portfolio(portfolio_id)
    assert view.assets[0].is_locked

    alice.unlock("p1")
    view = alice.get_portfolio(portfolio_id)
    assert view.assets[0].quantity.value == 1


def test_one_bad_field_does_not_break_the_portfolio(alice, portfolio_id, db_session):
    alice.add_asset(portfolio_id, "GOOD", 2, 10)
    alice.add_asset(portfolio_id, "BAD", 3, 10)

    bad = db_session.query(Asset).filter_by(symbol="BAD").first()
    bad.quantity = bad.quantity[:-2] + ("00" if not bad.quantity.endswith("00") else "11")
    bad.cost_basis = "zz:zz"
    db_session.commit()

    view = alice.get_portfolio(portfolio_id)
    by_symbol = {a.symbol: a for a in view.assets}

    assert by_symbol["BAD"].quantity.is_locked
    assert by_symbol["BAD"].cost_basis.is_locked
    assert by_symbol["GOOD"].quantity.value == 2
    assert view.total_cost == 20


def test_legacy_plaintext_rows_render(alice, portfolio_id, db_session):
    """Rows written before encryption existed are shown without a decrypt attempt"""
    portfolio = db_session.query(Portfolio).first()
    db_session.add(Asset(portfolio_id=portfolio.id, symbol="OLD", quantity=42.0, cost_basis="12"))
    db_session.commit()

    view = alice.get_portfolio(portfolio_id)
    asset = view.assets[0]
    assert asset.quantity.display == "42.0"
    assert asset.cost_basis.state is FieldState.PLAIN
    # Stringified legacy numbers still count towards the total
    assert asset.cost == 504.0
    assert view.total_cost == 504.0
    assert view.unpriced_count == 0


def test_non_numeric_plaintext_is_reported_as_unpriced(alice, portfolio_id, db_session):
    portfolio = db_session.query(Portfolio).first()
    db_session.add(Asset(portfolio_id=portfolio.id, symbol="ODD", quantity="n/a", cost_basis=1))
    db_session.commit()
    alice.add_asset(portfolio_id, "BTC", 2, 5)

    view = alice.get_portfolio(portfolio_id)

    assert view.total_cost == 10
    assert view.locked_count == 0
    assert view.unpriced_count == 1


def test_second_device_derives_same_key(alice, portfolio_id, db_session):
    alice.add_asset(portfolio_id, "BTC", 0.25, 40000)

    with TestClient(app) as other_http:
        other = PortfolioClient(other_http)
        other.login("alice", "p1")
        view = other.get_portfolio(portfolio_id)

    assert view.assets[0].quantity.value == 0.25
    assert view.assets[0].cost_basis.value == 40000


def test_other_user_cannot_decrypt_even_with_the_ciphertext(alice, portfolio_id, client, db_session):
    alice.add_asset(portfolio_id, "BTC", 1, 1)
    stored = db_session.query(Asset).first().quantity

    bob = PortfolioClient(client)
    bob.register("bob", "p1")
    with pytest.raises(AuthenticationFailure):
        FieldCodec.decrypt(stored, bob.encryption.key)


def test_logout_drops_key_and_token(alice, portfolio_id):
    alice.logout()

    assert not alice.is_authenticated
    assert alice.encryption.key is None
    with pytest.raises(SessionLocked):
        alice.get_portfolio(portfolio_id)
    with pytest.raises(SessionLocked):
        alice.unlock("p1")


@pytest.mark.parametrize("quantity", [math.nan, math.inf, "1", True, None])
def test_add_asset_rejects_non_numbers(alice, portfolio_id, quantity):
    with pytest.raises(InvalidInput):
        alice.add_asset(portfolio_id, "X", quantity, 1)


def test_delete_operations(alice, portfolio_id):
    asset = alice.add_asset(portfolio_id, "X", 1, 1)
    alice.delete_asset(portfolio_id, asset["id"])
    assert alice.get_portfolio(portfolio_id).assets == []

    alice.delete_portfolio(portfolio_id)
    assert alice.list_portfolios() == []
