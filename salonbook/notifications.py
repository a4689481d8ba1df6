"""Notification fan-out: in-app rows plus a hand-off to push delivery.

The core only decides *that* a notification fires and *to whom*. Transport is
the push sender's job; the default sender just logs.
"""
from __future__ import annotations

import logging
from typing import Protocol

from flask import current_app
from sqlalchemy.orm import Session

from .models import Notification

logger = logging.getLogger(__name__)


class PushSender(Protocol):
    def send(self, user_id: int, title: str, message: str) -> None:
        ...


class LoggingPushSender:
    def send(self, user_id: int, title: str, message: str) -> None:
        logger.info("push to user %s: %s - %s", user_id, title, message)


class NotificationDispatcher:
    def __init__(self, session: Session, push_sender: PushSender | None = None):
        self.session = session
        self.push_sender = push_sender or LoggingPushSender()

    def notify(self, user_id: int, title: str, message: str) -> Notification:
        notification = Notification(user_id=user_id, title=title, message=message)
        self.session.add(notification)
        try:
            self.push_sender.send(user_id, title, message)
        except Exception:
            # The in-app row is the record of delivery; push is best effort.
            logger.exception("Push hand-off failed for user %s", user_id)
        return notification


def current_dispatcher(session: Session) -> NotificationDispatcher:
    """Dispatcher using the push sender registered on the running app, if any."""
    return NotificationDispatcher(session, current_app.extensions.get("push_sender"))
