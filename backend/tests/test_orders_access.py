import pytest
from flask import Flask
from repairdesk.services import lifecycle
from tests.test_utils_seed import ensure_user, auth_headers, actor_for, create_order, log_actions


def _kind(resp):
    return resp.get_json()['error']['kind']


def test_non_party_user_gets_not_found(app_context: Flask):
    client = app_context.test_client()
    owner, stranger = ensure_user('user'), ensure_user('user')
    order = create_order(owner)
    resp = client.get(f'/orders/{order.id}', headers=auth_headers(stranger))
    assert resp.status_code == 404
    assert _kind(resp) == 'NotFound'
    assert 'data' not in resp.get_json()
    # Indistinguishable from a missing order
    missing = client.get('/orders/99999999', headers=auth_headers(stranger))
    assert missing.status_code == 404
    assert missing.get_json()['message'] == resp.get_json()['message']


def test_non_party_mutations_concealed(app_context: Flask):
    client = app_context.test_client()
    owner, stranger_tech = ensure_user('user'), ensure_user('technician')
    order = create_order(owner)
    headers = auth_headers(stranger_tech)
    assert client.put(f'/orders/{order.id}/status', json={'status': 'completed'}, headers=headers).status_code == 404
    assert client.post(f'/orders/{order.id}/notes', json={'description': 'hi'}, headers=headers).status_code == 404
    assert log_actions(order.id) == ['created']


def test_forbidden_when_existence_not_concealed(app_context: Flask, monkeypatch):
    monkeypatch.setitem(app_context.config, 'ORDER_CONCEAL_EXISTENCE', False)
    client = app_context.test_client()
    owner, stranger = ensure_user('user'), ensure_user('user')
    order = create_order(owner)
    resp = client.get(f'/orders/{order.id}', headers=auth_headers(stranger))
    assert resp.status_code == 403
    assert _kind(resp) == 'Forbidden'
    assert client.get('/orders/99999999', headers=auth_headers(stranger)).status_code == 404


def test_assignee_can_read_and_update(app_context: Flask):
    client = app_context.test_client()
    owner, admin, tech = ensure_user('user'), ensure_user('admin'), ensure_user('technician')
    order = create_order(owner)
    assert client.get(f'/orders/{order.id}', headers=auth_headers(tech)).status_code == 404
    lifecycle.assign_order(actor_for(admin), order.id, tech.id)
    assert client.get(f'/orders/{order.id}', headers=auth_headers(tech)).status_code == 200
    resp = client.put(f'/orders/{order.id}/status', json={'status': 'in_progress'}, headers=auth_headers(tech))
    assert resp.status_code == 200


def test_service_role_lifecycle_parity_without_assignment(app_context: Flask):
    client = app_context.test_client()
    owner, service, tech = ensure_user('user'), ensure_user('service'), ensure_user('technician')
    order = create_order(owner)
    headers = auth_headers(service)
    assert client.get(f'/orders/{order.id}', headers=headers).status_code == 200
    assert client.post(f'/orders/{order.id}/notes', json={'description': 'called customer'}, headers=headers).status_code == 201
    assert client.put(f'/orders/{order.id}/status', json={'status': 'cancelled'}, headers=headers).status_code == 200
    order2 = create_order(owner)
    resp = client.put(f'/orders/{order2.id}/assign', json={'technician_id': tech.id}, headers=headers)
    assert resp.status_code == 403
    assert _kind(resp) == 'Forbidden'


@pytest.mark.parametrize('role', ['user', 'technician'])
def test_only_admin_assigns_even_own_orders(app_context: Flask, role):
    client = app_context.test_client()
    actor_user = ensure_user(role)
    tech = ensure_user('technician')
    order = create_order(actor_user)
    resp = client.put(f'/orders/{order.id}/assign', json={'technician_id': tech.id}, headers=auth_headers(actor_user))
    assert resp.status_code == 403
    assert log_actions(order.id) == ['created']


def test_listing_is_scoped_by_role(app_context: Flask):
    client = app_context.test_client()
    alice, bob, admin = ensure_user('user'), ensure_user('user'), ensure_user('admin')
    tech = ensure_user('technician')
    a1, a2 = create_order(alice), create_order(alice)
    b1 = create_order(bob)
    lifecycle.assign_order(actor_for(admin), a2.id, tech.id)
    lifecycle.assign_order(actor_for(admin), b1.id, tech.id)

    data = client.get('/orders', headers=auth_headers(alice)).get_json()['data']
    assert {o['id'] for o in data['orders']} == {a1.id, a2.id}
    assert data['pagination']['total'] == 2

    # assigned_to filter is ignored for restricted roles
    data = client.get(f'/orders?assigned_to={tech.id}', headers=auth_headers(bob)).get_json()['data']
    assert {o['id'] for o in data['orders']} == {b1.id}

    data = client.get('/orders', headers=auth_headers(tech)).get_json()['data']
    assert {o['id'] for o in data['orders']} == {a2.id, b1.id}
    assert data['pagination']['total'] == 2

    data = client.get(f'/orders?assigned_to={tech.id}', headers=auth_headers(admin)).get_json()['data']
    assert {o['id'] for o in data['orders']} == {a2.id, b1.id}

    data = client.get('/orders?status=pending', headers=auth_headers(alice)).get_json()['data']
    assert [o['id'] for o in data['orders']] == [a1.id]


def test_listing_pagination_counts_scope_only(app_context: Flask):
    client = app_context.test_client()
    carol = ensure_user('user')
    ids = [create_order(carol).id for _ in range(3)]
    data = client.get('/orders?limit=2&page=2', headers=auth_headers(carol)).get_json()['data']
    assert data['pagination']['total'] == 3
    assert [o['id'] for o in data['orders']] == [min(ids)]
    data = client.get('/orders?sort=id&limit=2', headers=auth_headers(carol)).get_json()['data']
    assert [o['id'] for o in data['orders']] == sorted(ids)[:2]


def test_listing_rejects_bad_filters(app_context: Flask):
    client = app_context.test_client()
    user = ensure_user('user')
    assert client.get('/orders?status=nope', headers=auth_headers(user)).status_code == 400
    assert client.get('/orders?sort=secret', headers=auth_headers(user)).status_code == 400
    assert client.get('/orders?limit=x', headers=auth_headers(user)).status_code == 400


def test_assigned_to_filter_not_parsed_for_restricted_roles(app_context: Flask):
    client = app_context.test_client()
    tech, user, admin = ensure_user('technician'), ensure_user('user'), ensure_user('admin')
    for caller in (tech, user):
        resp = client.get('/orders?assigned_to=abc', headers=auth_headers(caller))
        assert resp.status_code == 200, resp.get_json()
    resp = client.get('/orders?assigned_to=abc', headers=auth_headers(admin))
    assert resp.status_code == 400
    assert _kind(resp) == 'InvalidInput'


def test_offset_beyond_integer_column_returns_empty_page(app_context: Flask):
    client = app_context.test_client()
    user = ensure_user('user')
    create_order(user)
    resp = client.get(f'/orders?offset={10 ** 23}', headers=auth_headers(user))
    assert resp.status_code == 200
    assert resp.get_json()['data']['orders'] == []
