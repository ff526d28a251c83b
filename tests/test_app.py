import json

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from adventureworks.extensions import db
from adventureworks.models import Currency, Product
from adventureworks.utils.model_utils import base


class TestApplication:

    def test_health(self, client):
        response = client.get('/api/health')

        assert response.status_code == 200
        assert json.loads(response.data) == {'status': 'ok'}

    def test_unknown_route_is_json(self, client):
        response = client.get('/api/unknown')

        assert response.status_code == 404
        assert 'error' in json.loads(response.data)

    def test_wrong_method(self, client):
        response = client.get('/api/products/add')

        assert response.status_code == 405
        assert json.loads(response.data) == {'error': 'method_not_allowed'}

    def test_server_side_store_failure_is_500(self, client, monkeypatch, send_json, new_product):
        def _unavailable(*args, **kwargs):
            raise OperationalError('INSERT INTO products', {}, Exception('database is locked'))

        monkeypatch.setattr(base, 'create_instance', _unavailable)

        status, data, _ = send_json('POST', '/api/products/add', new_product)

        assert status == 500
        assert data == {'title': 'SqlException', 'error': 'database is locked'}


class TestCommands:

    def test_init_db(self, runner):
        result = runner.invoke(args=['init-db'])

        assert result.exit_code == 0
        assert 'products' in result.output
        assert 'currencies' in result.output

    def test_seed_is_idempotent(self, runner, app):
        result = runner.invoke(args=['seed'])
        assert result.exit_code == 0
        assert 'Seeded 6 rows into products.' in result.output

        result = runner.invoke(args=['seed'])
        assert result.exit_code == 0
        assert 'products already has data; skipped.' in result.output

        with app.app_context():
            assert db.session.query(Product).count() == 6
            assert db.session.query(Currency).count() == 4


class TestStoreFailures:
    """Store errors on update and delete split into client (400) and server (500) failures."""

    @pytest.mark.parametrize('error, status', [
        (IntegrityError('UPDATE products', {}, Exception('UNIQUE constraint failed: products.name')), 400),
        (OperationalError('UPDATE products', {}, Exception('database is locked')), 500),
    ])
    def test_update(self, client, seeded, monkeypatch, send_json, error, status):
        def _fail(*args, **kwargs):
            raise error

        monkeypatch.setattr(base, 'replace_instance', _fail)

        code, data, _ = send_json('PUT', '/api/products/update', seeded[0])

        assert code == status
        assert data == {'title': 'SqlException', 'error': str(error.orig)}

    @pytest.mark.parametrize('error, status', [
        (IntegrityError('DELETE FROM products', {}, Exception('FOREIGN KEY constraint failed')), 400),
        (OperationalError('DELETE FROM products', {}, Exception('database is locked')), 500),
    ])
    def test_delete(self, client, seeded, monkeypatch, error, status):
        def _fail(*args, **kwargs):
            raise error

        monkeypatch.setattr(base, 'delete_instance', _fail)

        response = client.delete('/api/products/delete/1')

        assert response.status_code == status
        assert json.loads(response.data) == {'title': 'SqlException', 'error': str(error.orig)}
        assert client.get('/api/products/1').status_code == 200
