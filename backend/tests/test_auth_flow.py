from flask import Flask
from tests.test_utils_seed import auth_headers, ensure_user, unique_phone


def _last_code(sms, phone):
    for sent_phone, _, params in reversed(sms.sent):
        if sent_phone == phone:
            return params['code']
    raise AssertionError('no code sent')


def test_sms_login_registers_new_user(app_context: Flask, sms):
    client = app_context.test_client()
    phone = unique_phone()
    resp = client.post('/auth/send-code', json={'phone': phone})
    assert resp.status_code == 200, resp.get_json()
    code = _last_code(sms, phone)

    resp = client.post('/auth/login', json={'phone': phone, 'code': '000000' if code != '000000' else '111111'})
    assert resp.status_code == 400

    resp = client.post('/auth/login', json={'phone': phone, 'code': code, 'name': 'Eve'})
    assert resp.status_code == 200, resp.get_json()
    data = resp.get_json()['data']
    assert data['user']['role'] == 'user'
    assert data['user']['name'] == 'Eve'
    token = data['token']

    # A code verifies only once
    assert client.post('/auth/login', json={'phone': phone, 'code': code}).status_code == 400

    me = client.get('/auth/me', headers={'Authorization': f'Bearer {token}'})
    assert me.status_code == 200
    assert me.get_json()['data']['user']['phone'] == phone


def test_send_code_validates_phone(app_context: Flask, sms):
    resp = app_context.test_client().post('/auth/send-code', json={'phone': '12345'})
    assert resp.status_code == 400
    assert sms.sent == []


def test_send_code_reports_gateway_failure(app_context: Flask, sms):
    sms.fail = True
    resp = app_context.test_client().post('/auth/send-code', json={'phone': unique_phone()})
    assert resp.status_code == 500
    assert resp.get_json()['success'] is False


def test_password_login(app_context: Flask):
    client = app_context.test_client()
    admin = ensure_user('admin', password='s3cret')
    resp = client.post('/auth/password-login', json={'phone': admin.phone, 'password': 's3cret'})
    assert resp.status_code == 200
    body = resp.get_json()['data']
    assert body['user']['role'] == 'admin'
    resp = client.post('/auth/password-login', json={'phone': admin.phone, 'password': 'wrong'})
    assert resp.status_code == 401
    assert resp.get_json()['error']['kind'] == 'InvalidCredential'


def test_refresh_issues_new_token(app_context: Flask):
    client = app_context.test_client()
    user = ensure_user('user', password='pw')
    token = client.post('/auth/password-login', json={'phone': user.phone, 'password': 'pw'}).get_json()['data']['token']
    resp = client.post('/auth/refresh', headers={'Authorization': f'Bearer {token}'})
    assert resp.status_code == 200
    assert resp.get_json()['data']['token']


def test_logout_requires_token(app_context: Flask):
    client = app_context.test_client()
    user = ensure_user('user')
    assert client.post('/auth/logout').status_code == 401
    resp = client.post('/auth/logout', headers=auth_headers(user))
    assert resp.status_code == 200
    assert resp.get_json()['success'] is True


def test_login_rejects_malformed_fields(app_context: Flask, sms):
    client = app_context.test_client()
    phone = unique_phone()
    client.post('/auth/send-code', json={'phone': phone})
    assert client.post('/auth/login', json={'phone': phone, 'code': '验证码'}).status_code == 400
    code = _last_code(sms, phone)
    assert client.post('/auth/login', json={'phone': phone, 'code': code, 'name': {'x': 1}}).status_code == 400
    assert client.post('/auth/password-login', json={'phone': phone, 'password': ['pw']}).status_code == 400
    assert client.post('/auth/login', json=['not', 'an', 'object']).status_code == 400
