def test_unknown_path_returns_error_json(client):
    resp = client.get('/non-existent-path')
    # Flask default 404 should be wrapped by error handler
    assert resp.status_code == 404
    body = resp.get_json()
    assert body['success'] is False
    assert body['error']['status'] == 404
    assert 'message' in body


def test_internal_error_shape(app_context, monkeypatch):
    from tests.test_utils_seed import ensure_user, auth_headers
    import repairdesk.routes.orders as orders_mod
    user = ensure_user('user')

    def boom(*a, **k):
        raise RuntimeError('explode')
    monkeypatch.setattr(orders_mod.lifecycle, 'list_orders', boom)
    resp = app_context.test_client().get('/orders', headers=auth_headers(user))
    assert resp.status_code == 500
    body = resp.get_json()
    assert body['error']['status'] == 500
    assert body['error']['title'] == 'Internal Server Error'
    assert 'explode' not in body['message']


def test_healthz(client):
    assert client.get('/healthz').get_json() == {'status': 'ok'}
