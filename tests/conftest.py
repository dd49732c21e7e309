import pytest
from decimal import Decimal
import uuid

from app import create_app
from app.database import get_session, create_all, drop_all
from app.models import Product, Discount, Client, Representative
from app.cli_commands import seed_discounts


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing (in-memory SQLite)."""
    app = create_app('config.TestConfig')
    return app


@pytest.fixture(scope='function')
def client(app, session):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Fresh schema per test."""
    with app.app_context():
        create_all()
        session = get_session()
        yield session
        session.rollback()
        session.remove()
        drop_all()


@pytest.fixture(scope='function')
def discounts(session):
    """Default discount tiers."""
    seed_discounts(session)
    return {d.name: d for d in session.query(Discount).all()}


@pytest.fixture(scope='function')
def representative(session):
    """Create test representative."""
    suffix = str(uuid.uuid4())[:8]
    rep = Representative(name='Ana Souza', email=f'ana-{suffix}@test.com', active=True)
    session.add(rep)
    session.commit()
    return rep


@pytest.fixture(scope='function')
def other_representative(session):
    """Create a second representative."""
    suffix = str(uuid.uuid4())[:8]
    rep = Representative(name='Bruno Lima', email=f'bruno-{suffix}@test.com', active=True)
    session.add(rep)
    session.commit()
    return rep


@pytest.fixture(scope='function')
def customer(session, representative):
    """Create test client company."""
    suffix = str(uuid.uuid4())[:8]
    client = Client(
        name='Auto Peças Central',
        cnpj=f'12.345.678/0001-{suffix[:2]}',
        code=f'CLI-{suffix}',
        city='Campinas',
        state='SP',
        representative_id=representative.id,
        active=True
    )
    session.add(client)
    session.commit()
    return client


@pytest.fixture(scope='function')
def product(session):
    """Product listed at 100.00."""
    product = Product(
        code='FLT-100',
        name='Filtro de Óleo',
        brand='Tecfil',
        price=Decimal('100.00'),
        active=True
    )
    session.add(product)
    session.commit()
    return product


@pytest.fixture(scope='function')
def cheap_product(session):
    """Product listed at 20.00."""
    product = Product(
        code='PST-020',
        name='Pastilha de Freio',
        brand='Cobreq',
        price=Decimal('20.00'),
        active=True
    )
    session.add(product)
    session.commit()
    return product


@pytest.fixture(scope='function')
def inactive_product(session):
    """Discontinued product."""
    product = Product(
        code='OLD-001',
        name='Correia Antiga',
        price=Decimal('50.00'),
        active=False
    )
    session.add(product)
    session.commit()
    return product
