"""
FCM Service - Firebase Cloud Messaging operations

This module turns push messages into FCM messages and sends them via the
Firebase Admin SDK, either to one device or to every registered client.
"""
import os
import time
from datetime import timedelta
from typing import Callable, Optional

import firebase_admin
from firebase_admin import credentials, messaging

from .config import RelayConfig
from .log import get_logger
from .push_message import PushMessage
from .registry import ClientRegistry

logger = get_logger(__name__)

# Initialize Firebase Admin SDK
_app = None


def init_firebase(config: RelayConfig):
    """
    Initialize Firebase Admin SDK if not already initialized.

    Raises:
        FileNotFoundError: if the service account credentials file is missing
    """
    global _app
    if _app is not None:
        return _app

    if not os.path.exists(config.api_key):
        raise FileNotFoundError(
            f"Firebase credentials file not found at: {config.api_key}\n"
            "Please download it from Firebase Console > Project Settings > Service Accounts"
        )

    cred = credentials.Certificate(config.api_key)
    options = {'projectId': config.sender_id} if config.sender_id else None
    _app = firebase_admin.initialize_app(cred, options)
    logger.info("Firebase Admin SDK initialized for project: %s", _app.project_id)
    return _app


def build_message(token: str, wire: dict) -> messaging.Message:
    """
    Build the FCM message for one device from a push message's wire form.

    Args:
        token: FCM registration token of the device
        wire: Output of PushMessage.to_wire()

    Returns:
        messaging.Message addressed to the token. Messages without
        notification fields are sent as silent data messages.
    """
    ttl = int(wire['time_to_live'])
    notif = wire.get('notification') or {}
    high = wire['priority'] == 'high'

    notification = None
    android_notification = None
    aps = messaging.Aps(content_available=True)
    if notif:
        notification = messaging.Notification(
            title=notif.get('title'),
            body=notif.get('body'),
        )
        android_notification = messaging.AndroidNotification(
            sound=notif.get('sound'),
        )
        aps = messaging.Aps(
            badge=int(notif.get('badge', 0)),
            sound=notif.get('sound'),
        )

    # APNs expects an absolute expiry; 0 means deliver once or drop
    apns_headers = {
        'apns-priority': '10' if high else '5',
        'apns-expiration': '0' if ttl == 0 else str(int(time.time()) + ttl),
    }

    return messaging.Message(
        token=token,
        data=dict(wire['data']),
        notification=notification,
        # Android specific configuration
        android=messaging.AndroidConfig(
            priority=wire['priority'],
            ttl=timedelta(seconds=ttl),
            notification=android_notification,
        ),
        # iOS (APNs) specific configuration
        apns=messaging.APNSConfig(
            headers=apns_headers,
            payload=messaging.APNSPayload(aps=aps),
        ),
    )


def send_to_device(token: str, wire: dict) -> str:
    """
    Send a push message to a specific device.

    Args:
        token: FCM device token
        wire: Output of PushMessage.to_wire()

    Returns:
        str: Message ID from Firebase
    """
    response = messaging.send(build_message(token, wire))
    logger.info("Notification sent to device %s: %s (ID: %s)",
                token, wire['data'].get('type'), response)
    return response


class BroadcastSender:
    """
    Delivers a push message to every registered client.

    Registered as an observer of the push dispatch; one unreachable client
    never stops delivery to the others.

    Args:
        registry: Clients to broadcast to
        send: Function sending a wire message to one token
    """

    def __init__(self, registry: ClientRegistry,
                 send: Callable[[str, dict], object] = send_to_device):
        self._registry = registry
        self._send = send

    def broadcast(self, message: PushMessage) -> int:
        """
        Send the message to all registered clients.

        Returns:
            Number of clients the message was sent to
        """
        wire = message.to_wire()
        tokens = self._registry.snapshot()
        logger.info("Dispatching broadcast message to %d registered clients", len(tokens))

        delivered = 0
        for token in tokens:
            try:
                self._send(token, wire)
                delivered += 1
            except Exception:
                logger.exception("An unexpected error occurred attempting to message device: %s", token)
        return delivered

    def __call__(self, message: PushMessage) -> int:
        return self.broadcast(message)


def reply(token: str, message: PushMessage,
          send: Optional[Callable[[str, dict], object]] = None) -> bool:
    """
    Send a message to a single device, logging instead of raising on failure.

    Returns:
        True if the message was handed to Firebase
    """
    try:
        (send or send_to_device)(token, message.to_wire())
        return True
    except Exception:
        logger.exception("An unexpected error occurred attempting to message device: %s", token)
        return False
