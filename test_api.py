"""Tests for the REST API"""

import pytest
from fastapi.testclient import TestClient

import api
from conftest import BASE_URL, PRODUCT_PAGE


class UpperCaser:
    def transform(self, values, instruction):
        return [value.upper() for value in values]


class Failing:
    def transform(self, values, instruction):
        raise RuntimeError("quota exceeded")


@pytest.fixture
def client():
    api.sessions.clear()
    api.app.dependency_overrides[api.get_text_cleaner] = UpperCaser
    with TestClient(api.app) as test_client:
        yield test_client
    api.app.dependency_overrides.clear()
    api.sessions.clear()


@pytest.fixture
def session_id(client):
    response = client.post('/sessions', json={'html': PRODUCT_PAGE, 'base_url': BASE_URL})
    assert response.status_code == 200
    return response.json()['data']['session_id']


def select(client, session_id, query, **extra):
    return client.post(f'/sessions/{session_id}/select', json={'query': query, **extra})


def test_health(client):
    response = client.get('/health')
    assert response.status_code == 200
    assert response.json()['status'] == 'healthy'


def test_config_hides_secrets(client):
    data = client.get('/config').json()['data']
    assert data['max_ancestor_depth'] >= 1
    assert 'openai_api_key' not in data


class TestSessions:
    def test_create_requires_content(self, client):
        response = client.post('/sessions', json={})
        assert response.status_code == 400
        assert 'html or url' in response.json()['detail']

    def test_create_rejects_unknown_parser(self, client):
        response = client.post('/sessions', json={'html': PRODUCT_PAGE, 'parser': 'regex'})
        assert response.status_code == 400

    def test_new_session_is_empty(self, client, session_id):
        data = client.get(f'/sessions/{session_id}').json()['data']
        assert data['state'] == 'no_context'
        assert data['list'] is None
        assert data['fields'] == []
        assert data['rows'] == []
        assert data['highlight_selector'] is None

    def test_unknown_session(self, client):
        response = client.get('/sessions/missing')
        assert response.status_code == 404
        assert response.json() == {'success': False, 'error': "Session 'missing' not found"}

    def test_delete(self, client, session_id):
        assert client.delete(f'/sessions/{session_id}').status_code == 200
        assert client.get(f'/sessions/{session_id}').status_code == 404


class TestSelection:
    def test_select_builds_rows(self, client, session_id):
        body = select(client, session_id, 'h3.property-title').json()

        assert body['success'] is True
        assert body['data']['outcome'] == 'added'
        assert body['data']['list']['item_selector'] == 'li.product-card'
        assert body['data']['field']['name'] == 'Title'
        assert [row['id'] for row in body['data']['rows']] == ['row-0', 'row-1', 'row-2']
        assert body['data']['highlight_selector'] == '.property-title'

    def test_no_list(self, client, session_id):
        body = select(client, session_id, 'title').json()
        assert body['success'] is False
        assert body['data']['outcome'] == 'no_list'

    def test_unmatched_query(self, client, session_id):
        body = select(client, session_id, '.nothing-here').json()
        assert body['success'] is False
        assert 'No element matches' in body['error']

    def test_declined_switch(self, client, session_id):
        select(client, session_id, 'h3.property-title')
        body = select(client, session_id, 'span.headline', confirm_switch=False).json()

        assert body['data']['outcome'] == 'cancelled'
        assert body['data']['list']['item_selector'] == 'li.product-card'

    def test_duplicate_add(self, client, session_id):
        select(client, session_id, 'h3.property-title')
        body = select(client, session_id, 'li:nth-of-type(2) h3', on_duplicate='add').json()

        assert body['data']['outcome'] == 'added'
        assert len(body['data']['fields']) == 2

    def test_selection_mode(self, client, session_id):
        response = client.post(f'/sessions/{session_id}/mode', json={'selecting': False})
        assert response.json()['data']['selecting'] is False

        body = select(client, session_id, 'h3.property-title').json()
        assert body['data']['outcome'] == 'ignored'


class TestFields:
    def test_rename_and_remove(self, client, session_id):
        field_id = select(client, session_id, 'h3.property-title').json()['data']['field']['id']

        renamed = client.patch(f'/sessions/{session_id}/fields/{field_id}', json={'name': 'Product'})
        assert renamed.json()['data']['fields'][0]['name'] == 'Product'

        removed = client.delete(f'/sessions/{session_id}/fields/{field_id}')
        assert removed.json()['data']['fields'] == []
        assert client.delete(f'/sessions/{session_id}/fields/{field_id}').status_code == 404

    def test_clean(self, client, session_id):
        field_id = select(client, session_id, 'h3.property-title').json()['data']['field']['id']

        body = client.post(f'/sessions/{session_id}/clean',
                           json={'field_id': field_id, 'instruction': 'upper case'}).json()

        assert body['success'] is True
        assert body['data']['column'] == ['WIDGET', 'GADGET "PRO"', 'GIZMO']

    def test_failed_clean_keeps_values(self, client, session_id):
        api.app.dependency_overrides[api.get_text_cleaner] = Failing
        field_id = select(client, session_id, 'h3.property-title').json()['data']['field']['id']

        body = client.post(f'/sessions/{session_id}/clean', json={'field_id': field_id}).json()

        assert body['success'] is False
        assert body['error'] == 'AI Cleaning Failed: quota exceeded'
        assert body['data']['column'] == ['Widget', 'Gadget "Pro"', 'Gizmo']

    def test_clean_unknown_field(self, client, session_id):
        response = client.post(f'/sessions/{session_id}/clean', json={'field_id': 'nope'})
        assert response.status_code == 404


class TestExport:
    def test_csv(self, client, session_id):
        select(client, session_id, 'h3.property-title')
        select(client, session_id, 'p.price')

        response = client.get(f'/sessions/{session_id}/export', params={'format': 'csv'})

        assert response.status_code == 200
        assert response.headers['content-type'].startswith('text/csv')
        lines = response.text.splitlines()
        assert len(lines) == 4
        assert lines[2] == '"Gadget ""Pro""","$20"'

    def test_json(self, client, session_id):
        select(client, session_id, 'img.thumb')
        rows = client.get(f'/sessions/{session_id}/export', params={'format': 'json'}).json()
        assert rows[2]['id'] == 'row-2'
        assert list(rows[2].values())[1] == 'https://shop.example/img/3.png'
