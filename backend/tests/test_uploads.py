import io
from flask import Flask
from tests.test_utils_seed import ensure_user, auth_headers


def test_upload_and_fetch_image(app_context: Flask):
    client = app_context.test_client()
    user = ensure_user('user')
    resp = client.post('/uploads', data={'image': (io.BytesIO(b'\x89PNG fake'), 'crack.png')},
                       headers=auth_headers(user), content_type='multipart/form-data')
    assert resp.status_code == 201, resp.get_json()
    data = resp.get_json()['data']
    assert data['filename'].endswith('.png')
    fetched = client.get(data['url'])
    assert fetched.status_code == 200
    assert fetched.data == b'\x89PNG fake'
    fetched.close()


def test_upload_rejects_non_images_and_anonymous(app_context: Flask):
    client = app_context.test_client()
    user = ensure_user('user')
    resp = client.post('/uploads', data={'image': (io.BytesIO(b'#!/bin/sh'), 'run.sh')},
                       headers=auth_headers(user), content_type='multipart/form-data')
    assert resp.status_code == 400
    resp = client.post('/uploads', data={'image': (io.BytesIO(b'x'), 'a.png')}, content_type='multipart/form-data')
    assert resp.status_code == 401
    assert client.get('/uploads/does-not-exist.png').status_code == 404


def _upload(client, user, name='a.png', data=b'img'):
    resp = client.post('/uploads', data={'image': (io.BytesIO(data), name)},
                       headers=auth_headers(user), content_type='multipart/form-data')
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()['data']['filename']


def test_multiple_upload_limits(app_context: Flask):
    client = app_context.test_client()
    user = ensure_user('user')
    files = [(io.BytesIO(b'1'), 'one.jpg'), (io.BytesIO(b'2'), 'two.webp')]
    resp = client.post('/uploads/multiple', data={'images': files},
                       headers=auth_headers(user), content_type='multipart/form-data')
    assert resp.status_code == 201, resp.get_json()
    saved = resp.get_json()['data']['files']
    assert [f['original_name'] for f in saved] == ['one.jpg', 'two.webp']

    too_many = [(io.BytesIO(b'x'), f'{i}.png') for i in range(6)]
    resp = client.post('/uploads/multiple', data={'images': too_many},
                       headers=auth_headers(user), content_type='multipart/form-data')
    assert resp.status_code == 400

    mixed = [(io.BytesIO(b'x'), 'ok.png'), (io.BytesIO(b'y'), 'evil.exe')]
    resp = client.post('/uploads/multiple', data={'images': mixed},
                       headers=auth_headers(user), content_type='multipart/form-data')
    assert resp.status_code == 400


def test_upload_info_and_delete(app_context: Flask):
    client = app_context.test_client()
    user = ensure_user('user')
    name = _upload(client, user, data=b'12345')
    info = client.get(f'/uploads/info/{name}').get_json()['data']
    assert info['filename'] == name
    assert info['size'] == 5
    assert info['modified_at'].endswith('Z')
    assert client.delete(f'/uploads/{name}').status_code == 401
    assert client.delete(f'/uploads/{name}', headers=auth_headers(user)).status_code == 200
    assert client.get(f'/uploads/info/{name}').status_code == 404
    assert client.delete(f'/uploads/{name}', headers=auth_headers(user)).status_code == 404


def test_attached_image_deletable_by_staff_only(app_context: Flask):
    from tests.test_utils_seed import create_order
    client = app_context.test_client()
    user, service = ensure_user('user'), ensure_user('service')
    name = _upload(client, user)
    create_order(user, images=[f'/uploads/{name}'])
    resp = client.delete(f'/uploads/{name}', headers=auth_headers(user))
    assert resp.status_code == 403
    assert client.delete(f'/uploads/{name}', headers=auth_headers(service)).status_code == 200
