from __future__ import annotations
"""SMS notification dispatch for order lifecycle milestones.

``notify`` is called by the lifecycle engine strictly after the order change
and its audit entry are committed. Delivery is best effort: failures are logged
and reported as ``False`` but never raised to the caller.

Gateways:
  LoggingSmsGateway: development/test backend, only writes the message to the log.
  HttpSmsGateway: POSTs a JSON message to ``SMS_GATEWAY_URL``; the gateway answers
  ``{"Code": "OK"}`` on acceptance.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import requests
from flask import current_app

logger = logging.getLogger(__name__)

ORDER_CREATED = 'order_created'
ORDER_ASSIGNED = 'order_assigned'
ORDER_COMPLETED = 'order_completed'

# event kind -> config key holding the provider template code
EVENT_TEMPLATES = {
    ORDER_CREATED: 'SMS_TEMPLATE_ORDER_CREATED',
    ORDER_ASSIGNED: 'SMS_TEMPLATE_ORDER_ASSIGNED',
    ORDER_COMPLETED: 'SMS_TEMPLATE_ORDER_COMPLETED',
}


@dataclass(frozen=True)
class NotificationEvent:
    phone: str
    kind: str
    payload: Dict[str, Any] = field(default_factory=dict)


class LoggingSmsGateway:
    def __init__(self, sign_name: str = ''):
        self.sign_name = sign_name

    def send(self, phone: str, template_code: str, params: Mapping[str, str]) -> bool:
        logger.info('[sms:%s] %s -> %s %s', self.sign_name, template_code, mask_phone(phone), dict(params))
        return True


class HttpSmsGateway:
    def __init__(self, url: str, sign_name: str, token: str = '', timeout: float = 5.0, session: Optional[requests.Session] = None):
        self.url = url
        self.sign_name = sign_name
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    def send(self, phone: str, template_code: str, params: Mapping[str, str]) -> bool:
        headers = {'Authorization': f'Bearer {self.token}'} if self.token else {}
        resp = self.session.post(
            self.url,
            json={
                'PhoneNumbers': phone,
                'SignName': self.sign_name,
                'TemplateCode': template_code,
                'TemplateParam': dict(params),
            },
            headers=headers,
            timeout=self.timeout,
        )
        resp.raise_for_status()
        body = resp.json()
        if body.get('Code') == 'OK':
            return True
        logger.warning('SMS gateway refused %s: %s', template_code, body.get('Message'))
        return False


def build_gateway(config: Mapping[str, Any]):
    backend = config.get('SMS_BACKEND', 'log')
    sign_name = config.get('SMS_SIGN_NAME', '')
    if backend == 'http':
        if not config.get('SMS_GATEWAY_URL'):
            raise RuntimeError('SMS_BACKEND=http requires SMS_GATEWAY_URL')
        return HttpSmsGateway(
            config['SMS_GATEWAY_URL'],
            sign_name,
            token=config.get('SMS_GATEWAY_TOKEN', ''),
            timeout=float(config.get('SMS_GATEWAY_TIMEOUT', 5)),
        )
    if backend != 'log':
        raise RuntimeError(f'Unknown SMS_BACKEND {backend!r}')
    return LoggingSmsGateway(sign_name)


def mask_phone(phone: str) -> str:
    """Hide the middle four digits of an 11-digit phone number."""
    if not phone or len(phone) != 11:
        return phone
    return f'{phone[:3]}****{phone[7:]}'


def _send(phone: str, template_code: str, params: Mapping[str, Any]) -> bool:
    gateway = current_app.extensions['sms_gateway']
    str_params = {k: '' if v is None else str(v) for k, v in params.items()}
    try:
        delivered = gateway.send(phone, template_code, str_params)
    except Exception:
        logger.exception('SMS delivery to %s failed (%s)', mask_phone(phone), template_code)
        return False
    if not delivered:
        logger.warning('SMS delivery to %s not accepted (%s)', mask_phone(phone), template_code)
    return bool(delivered)


def notify(phone: str, event_kind: str, payload: Mapping[str, Any]) -> bool:
    """Deliver a templated lifecycle message; returns delivered/failed, never raises."""
    config_key = EVENT_TEMPLATES.get(event_kind)
    if config_key is None:
        logger.error('Unknown notification kind %r', event_kind)
        return False
    if not phone:
        logger.warning('Notification %s skipped: no contact phone', event_kind)
        return False
    return _send(phone, current_app.config.get(config_key, config_key), payload)


def dispatch(event: NotificationEvent) -> bool:
    return notify(event.phone, event.kind, event.payload)


def send_verification_code(phone: str, code: str) -> bool:
    return _send(phone, current_app.config.get('SMS_TEMPLATE_VERIFICATION', 'SMS_VERIFICATION'), {'code': code})


__all__ = [
    'NotificationEvent', 'LoggingSmsGateway', 'HttpSmsGateway', 'build_gateway', 'notify', 'dispatch',
    'send_verification_code', 'mask_phone', 'ORDER_CREATED', 'ORDER_ASSIGNED', 'ORDER_COMPLETED',
]
