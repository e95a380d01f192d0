import pytest
from app import create_app
from app.extensions import db as _db
from app.services import catalog_service


@pytest.fixture
def app():
    """Create application for testing with a fresh in-memory database."""
    app = create_app("testing")
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()
    catalog_service._subscribers.clear()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def admin_headers(app):
    return {
        "Authorization": f"Bearer {app.config['ADMIN_API_TOKEN']}",
        "X-Admin-Email": app.config["ADMIN_EMAILS"][0],
    }


@pytest.fixture
def catalog(db):
    """Seed the default sizes, colors and categories."""
    catalog_service.seed_defaults()
    return catalog_service.load_attributes()
