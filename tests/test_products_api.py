import json

from adventureworks.extensions import db
from adventureworks.models import Product


class TestProductReads:
    """List and get-by-id endpoints."""

    def test_list_empty_table(self, client):
        response = client.get('/api/products/list')

        assert response.status_code == 200
        assert json.loads(response.data) == []

    def test_list_returns_all_rows_in_key_order(self, client, seeded):
        response = client.get('/api/products/list')

        assert response.status_code == 200
        data = json.loads(response.data)
        assert [p['product_id'] for p in data] == [p['product_id'] for p in seeded]
        assert data[0]['name'] == 'Mountain-200 Black, 38'

    def test_get_by_id(self, client, seeded):
        for expected in seeded:
            response = client.get(f"/api/products/{expected['product_id']}")

            assert response.status_code == 200
            data = json.loads(response.data)
            assert data['name'] == expected['name']
            assert data['product_number'] == expected['product_number']
            assert data['list_price'] == expected['list_price']
            assert 'modified_date' in data

    def test_get_by_id_missing(self, client, seeded):
        response = client.get('/api/products/999')

        assert response.status_code == 404
        data = json.loads(response.data)
        assert 'product_id=999' in data['error']

    def test_get_by_non_numeric_id(self, client, seeded):
        response = client.get('/api/products/abc')

        assert response.status_code == 404

    def test_reads_do_not_write_back(self, client, app, seeded):
        client.get('/api/products/list')
        client.get('/api/products/1')

        with app.app_context():
            assert db.session.get(Product, 1).name == seeded[0]['name']


class TestProductAdd:
    """POST /add"""

    def test_add_then_get(self, client, seeded, new_product, send_json):
        status, data, response = send_json('POST', '/api/products/add', new_product)

        assert status == 201
        assert data['product_id'] == len(seeded) + 1
        assert data['name'] == new_product['name']
        assert response.headers['Location'].endswith(f"/api/products/{data['product_id']}")

        response = client.get(f"/api/products/{data['product_id']}")
        assert response.status_code == 200
        assert json.loads(response.data)['product_number'] == new_product['product_number']

    def test_add_applies_column_defaults(self, send_json):
        status, data, _ = send_json('POST', '/api/products/add', {
            'name': 'Cable Lock',
            'product_number': 'LO-C100',
            'list_price': 25.0,
        })

        assert status == 201
        assert data['standard_cost'] == 0.0
        assert data['color'] is None

    def test_add_missing_required_fields(self, send_json):
        status, data, _ = send_json('POST', '/api/products/add', {'color': 'Red'})

        assert status == 400
        assert data['title'] == 'Invalid Data'
        assert set(data['error']) >= {'name', 'product_number', 'list_price'}

    def test_add_negative_price(self, send_json, new_product):
        new_product['list_price'] = -1

        status, data, _ = send_json('POST', '/api/products/add', new_product)

        assert status == 400
        assert 'list_price' in data['error']

    def test_add_body_not_json(self, client):
        response = client.post('/api/products/add', data='not json', content_type='text/plain')

        assert response.status_code == 400
        data = json.loads(response.data)
        assert data['title'] == 'Invalid Data'

    def test_add_json_array_rejected(self, send_json, new_product):
        status, data, _ = send_json('POST', '/api/products/add', [new_product])

        assert status == 400
        assert '_schema' in data['error']

    def test_add_duplicate_name_reports_store_error(self, client, seeded, send_json, new_product):
        new_product['name'] = seeded[0]['name']

        status, data, _ = send_json('POST', '/api/products/add', new_product)

        assert status == 400
        assert data['title'] == 'SqlException'
        assert 'UNIQUE' in data['error']

        # The session was rolled back and keeps serving requests
        response = client.get('/api/products/list')
        assert len(json.loads(response.data)) == len(seeded)


class TestProductUpdate:
    """PUT /update"""

    def test_update_replaces_whole_row(self, client, seeded, send_json):
        original = seeded[0]
        status, data, _ = send_json('PUT', '/api/products/update', {
            'product_id': original['product_id'],
            'name': original['name'],
            'product_number': original['product_number'],
            'list_price': 1999.99,
        })

        assert status == 200
        assert data['list_price'] == 1999.99
        # Omitted nullable fields are cleared, omitted defaults are kept
        assert data['color'] is None
        assert data['category'] is None
        assert data['size'] is None
        assert data['standard_cost'] == original['standard_cost']

        stored = json.loads(client.get(f"/api/products/{original['product_id']}").data)
        assert stored == data

    def test_update_accepts_body_from_get(self, client, seeded, send_json):
        body = json.loads(client.get('/api/products/2').data)
        body['color'] = 'Yellow'

        status, data, _ = send_json('PUT', '/api/products/update', body)

        assert status == 200
        assert data['color'] == 'Yellow'
        assert data['name'] == seeded[1]['name']

    def test_update_without_key(self, seeded, send_json):
        status, data, _ = send_json('PUT', '/api/products/update', {'name': 'Nameless'})

        assert status == 400
        assert 'product_id' in data['error']

    def test_update_with_invalid_key(self, seeded, send_json):
        status, data, _ = send_json('PUT', '/api/products/update', {'product_id': 'one'})

        assert status == 400
        assert 'product_id' in data['error']

    def test_update_unknown_row(self, seeded, send_json, new_product):
        new_product['product_id'] = 999

        status, data, _ = send_json('PUT', '/api/products/update', new_product)

        assert status == 400
        assert data['title'] == 'Invalid Data'

    def test_update_invalid_fields(self, seeded, send_json):
        status, data, _ = send_json('PUT', '/api/products/update', {
            'product_id': 1,
            'name': '',
            'product_number': 'BK-M68B-38',
            'list_price': 10,
        })

        assert status == 400
        assert 'name' in data['error']

    def test_update_to_duplicate_product_number(self, seeded, send_json):
        status, data, _ = send_json('PUT', '/api/products/update', {
            'product_id': 1,
            'name': seeded[0]['name'],
            'product_number': seeded[1]['product_number'],
            'list_price': 10,
        })

        assert status == 400
        assert data['title'] == 'SqlException'


class TestProductDelete:
    """DELETE /delete/<id>"""

    def test_delete_then_get(self, client, seeded):
        response = client.delete('/api/products/delete/3')

        assert response.status_code == 200
        assert json.loads(response.data)['message'] == 'Item with Id: 3 Was Deleted From DB'

        assert client.get('/api/products/3').status_code == 404
        remaining = json.loads(client.get('/api/products/list').data)
        assert len(remaining) == len(seeded) - 1

    def test_delete_missing(self, client, seeded):
        response = client.delete('/api/products/delete/999')

        assert response.status_code == 404

    def test_delete_twice(self, client, seeded):
        assert client.delete('/api/products/delete/1').status_code == 200
        assert client.delete('/api/products/delete/1').status_code == 404
