import pytest
import requests
from flask import Flask
from repairdesk.services.notifications import (
    HttpSmsGateway, LoggingSmsGateway, build_gateway, mask_phone, notify, ORDER_COMPLETED,
)


class FakeResponse:
    def __init__(self, body, status=200):
        self.body = body
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f'{self.status_code}')

    def json(self):
        return self.body


class FakeSession:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        return self.response


def test_http_gateway_posts_template():
    session = FakeSession(FakeResponse({'Code': 'OK'}))
    gw = HttpSmsGateway('https://sms.example/send', 'Shop', token='t0k', session=session)
    assert gw.send('13912345678', 'SMS_ORDER_CREATED', {'order_id': '7'}) is True
    url, kwargs = session.calls[0]
    assert url == 'https://sms.example/send'
    assert kwargs['json']['TemplateCode'] == 'SMS_ORDER_CREATED'
    assert kwargs['json']['TemplateParam'] == {'order_id': '7'}
    assert kwargs['headers'] == {'Authorization': 'Bearer t0k'}


def test_http_gateway_refusal_is_false():
    gw = HttpSmsGateway('https://sms.example/send', 'Shop', session=FakeSession(FakeResponse({'Code': 'isv.BUSINESS_LIMIT'})))
    assert gw.send('13912345678', 'T', {}) is False


def test_notify_swallows_gateway_errors(app_context: Flask, monkeypatch):
    gw = HttpSmsGateway('https://sms.example/send', 'Shop', session=FakeSession(FakeResponse({}, status=503)))
    monkeypatch.setitem(app_context.extensions, 'sms_gateway', gw)
    assert notify('13912345678', ORDER_COMPLETED, {'order_id': 1}) is False


def test_notify_unknown_kind_and_missing_phone(app_context: Flask, sms):
    assert notify('13912345678', 'order_exploded', {}) is False
    assert notify('', ORDER_COMPLETED, {}) is False
    assert sms.sent == []


def test_build_gateway():
    assert isinstance(build_gateway({'SMS_BACKEND': 'log'}), LoggingSmsGateway)
    assert isinstance(build_gateway({'SMS_BACKEND': 'http', 'SMS_GATEWAY_URL': 'https://x'}), HttpSmsGateway)
    with pytest.raises(RuntimeError):
        build_gateway({'SMS_BACKEND': 'http'})
    with pytest.raises(RuntimeError):
        build_gateway({'SMS_BACKEND': 'pigeon'})


def test_mask_phone():
    assert mask_phone('13912345678') == '139****5678'
    assert mask_phone('123') == '123'
