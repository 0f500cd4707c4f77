"""
Shared pytest fixtures.

Every test gets a fresh application with an in-memory SQLite database and a
single pushed app context. Set TEST_DATABASE_URL to run against PostgreSQL.

Concurrency tests use `threaded_app`, backed by a file database so that each
thread's app context gets its own connection.
"""
import os
import pytest

from app import create_app
from app.extensions import db
from app.models import User, Dealer, Batch, Coupon, CouponStatus, Transaction, TransactionType
from app.services.auth_service import create_access_token, ROLE_USER, ROLE_DEALER

ADMIN_KEY = 'test-admin-key'


@pytest.fixture
def app():
    """Application with all tables created."""
    app = create_app('testing')

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def sample_mason(app):
    mason = User(phone='+919811111111', name='Ramesh')
    db.session.add(mason)
    db.session.commit()
    return mason


@pytest.fixture
def sample_dealer(app):
    dealer = Dealer(name='Shree Hardware', phone='+919822222222', gst='27ABCDE1234F1Z5')
    db.session.add(dealer)
    db.session.commit()
    return dealer


@pytest.fixture
def sample_batch(app):
    batch = Batch(name='Tile Adhesive 20kg', sku='TA-20', points_per_coupon=50, quantity=0)
    db.session.add(batch)
    db.session.commit()
    return batch


@pytest.fixture
def make_coupon(app, sample_batch):
    """Factory for issued coupons: make_coupon('TOKEN-1', points=50)."""
    def _make(token, points=50, status=CouponStatus.ISSUED.value):
        coupon = Coupon(token=token, batch_id=sample_batch.id, points=points, status=status)
        db.session.add(coupon)
        db.session.commit()
        return coupon
    return _make


@pytest.fixture
def fund_mason(app):
    """Give a mason spendable points via a redemption ledger row."""
    def _fund(mason, points):
        db.session.add(Transaction(user_id=mason.id, amount=points, type=TransactionType.REDEMPTION.value))
        db.session.commit()
    return _fund


@pytest.fixture
def mason_headers(sample_mason):
    token = create_access_token(sample_mason.id, sample_mason.phone, ROLE_USER)
    return {'Authorization': f'Bearer {token}', 'Content-Type': 'application/json'}


@pytest.fixture
def dealer_headers(sample_dealer):
    token = create_access_token(sample_dealer.id, sample_dealer.phone, ROLE_DEALER)
    return {'Authorization': f'Bearer {token}', 'Content-Type': 'application/json'}


@pytest.fixture
def admin_headers():
    return {'X-Admin-Key': ADMIN_KEY, 'Content-Type': 'application/json'}


@pytest.fixture
def threaded_app(tmp_path):
    """
    Application on a database that supports real concurrent connections.

    Yields the app with no context pushed; callers push one per thread.
    """
    url = os.getenv('TEST_DATABASE_URL') or f"sqlite:///{tmp_path / 'concurrency.db'}"
    overrides = {'SQLALCHEMY_DATABASE_URI': url}
    if url.startswith('sqlite'):
        overrides['SQLALCHEMY_ENGINE_OPTIONS'] = {
            'connect_args': {'check_same_thread': False, 'timeout': 30},
            'pool_size': 20,
            'max_overflow': 0,
        }

    app = create_app('testing', overrides)

    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()
