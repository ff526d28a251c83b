import json
import os

import pytest

from adventureworks import create_app
from adventureworks.commands.seed_commands import SAMPLE_PRODUCTS, seed_database
from adventureworks.extensions import db


@pytest.fixture(scope='function')
def app():
    """Create application for testing with a fresh in-memory database."""
    os.environ['FLASK_ENV'] = 'testing'

    app = create_app('testing')

    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()

@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()

@pytest.fixture(scope='function')
def runner(app):
    """Create test CLI runner."""
    return app.test_cli_runner()

@pytest.fixture(scope='function')
def seeded(app):
    """Load the sample products and currencies; returns the product rows in key order."""
    with app.app_context():
        seed_database()
    return [dict(row, product_id=index) for index, row in enumerate(SAMPLE_PRODUCTS, start=1)]

@pytest.fixture(scope='function')
def new_product():
    return {
        'name': 'Mountain-500 Silver, 40',
        'product_number': 'BK-M18S-40',
        'color': 'Silver',
        'category': 'Bikes',
        'size': '40',
        'weight': 12.2,
        'standard_cost': 308.22,
        'list_price': 564.99,
    }

@pytest.fixture(scope='function')
def send_json(client):
    """Send a JSON body with the given method and return (status, decoded body, response)."""
    def _send(method, url, payload):
        response = client.open(url,
                               method=method,
                               data=json.dumps(payload),
                               content_type='application/json')
        return response.status_code, json.loads(response.data), response
    return _send
