"""
Notification Service

Fans report and project events out to every channel: stored in-app
notifications, Slack (incoming webhook), real-time socket events, browser
Web Push (VAPID, via pywebpush) and email (SMTP via the email service,
dispatched on a background thread).

Channel failures are logged and recorded; they never fail the request that
triggered the event.
"""

import os
import json
import uuid
import asyncio
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, UTC
from typing import Optional, Dict, Any, List, Tuple

import requests
from pywebpush import WebPushException, webpush
from sqlalchemy.orm import Session

from projecthub.db import models
from projecthub.db.database import SessionLocal
from projecthub.db.repositories import notifications as notification_repo
from projecthub.db.repositories import users as user_repo
from projecthub.services.email_service import EmailService, get_email_service
from projecthub.services.realtime import ConnectionManager, EVENT_NOTIFICATION, manager, user_room
from projecthub.utils.urls import build_app_url

logger = logging.getLogger(__name__)

# Event types
EVENT_EOD_SUBMITTED = 'eod_submitted'
EVENT_MEMO_SUBMITTED = 'memo_submitted'
EVENT_PROJECT_ASSIGNED = 'project_assigned'
EVENT_PROJECT_CREATED = 'project_created'
EVENT_TEST_NOTIFICATION = 'test_notification'

# Per-event user preference that gates Slack delivery
TYPE_PREFERENCE_FIELD = {
    EVENT_EOD_SUBMITTED: 'eod_notifications',
    EVENT_MEMO_SUBMITTED: 'memo_notifications',
    EVENT_PROJECT_ASSIGNED: 'project_notifications',
    EVENT_PROJECT_CREATED: 'project_notifications',
}

# Per-event flag on managed external recipients; events not listed are never
# copied to the managed list
RECIPIENT_FLAG_FIELD = {
    EVENT_EOD_SUBMITTED: 'eod_enabled',
    EVENT_MEMO_SUBMITTED: 'memo_enabled',
    EVENT_PROJECT_CREATED: 'project_enabled',
}

DEFAULT_PREFERENCES = {
    'email_enabled': True,
    'slack_enabled': True,
    'push_enabled': True,
    'eod_notifications': True,
    'memo_notifications': True,
    'project_notifications': True,
}

SLACK_TIMEOUT_SECONDS = 3
PUSH_TIMEOUT_SECONDS = 3
DEFAULT_VAPID_SUBJECT = "mailto:admin@projecthub.local"

# Push service responses meaning the subscription is gone for good
PUSH_GONE_STATUSES = (403, 404, 410)


def email_delivery_enabled() -> bool:
    return os.getenv('EMAIL_NOTIFICATIONS_ENABLED', 'true').lower() == 'true'


@dataclass
class NotificationTarget:
    user_id: uuid.UUID
    email: str
    name: Optional[str] = None
    preferences: Dict[str, bool] = field(default_factory=lambda: dict(DEFAULT_PREFERENCES))


@dataclass
class NotificationPayload:
    event_type: str
    title: str
    body: str
    url: Optional[str] = None
    email_subject: Optional[str] = None
    template_name: Optional[str] = None
    template_context: Dict[str, Any] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)


class NotificationService:
    """Service for managing notifications across channels."""

    def __init__(
        self,
        db: Session,
        email_service: Optional[EmailService] = None,
        connection_manager: Optional[ConnectionManager] = None,
        slack_webhook_url: Optional[str] = None,
        vapid_public_key: Optional[str] = None,
        vapid_private_key: Optional[str] = None,
    ):
        self.db = db
        self.email_service = email_service or get_email_service()
        self.connection_manager = connection_manager or manager
        self.slack_webhook_url = slack_webhook_url if slack_webhook_url is not None else os.getenv('SLACK_WEBHOOK_URL', '')
        self.vapid_public_key = vapid_public_key if vapid_public_key is not None else os.getenv('VAPID_PUBLIC_KEY', '')
        self.vapid_private_key = vapid_private_key if vapid_private_key is not None else os.getenv('VAPID_PRIVATE_KEY', '')
        self.vapid_subject = os.getenv('VAPID_SUBJECT') or DEFAULT_VAPID_SUBJECT

    # === User Preferences ===

    def get_user_preferences(self, user_id: uuid.UUID) -> Dict[str, bool]:
        """Return stored preferences merged over the all-enabled defaults."""
        prefs = dict(DEFAULT_PREFERENCES)
        stored = notification_repo.get_preferences(self.db, user_id)
        if stored is not None:
            for key in DEFAULT_PREFERENCES:
                prefs[key] = bool(getattr(stored, key))
        return prefs

    def update_user_preferences(self, user_id: uuid.UUID, update_data: Dict[str, Any]) -> Dict[str, bool]:
        notification_repo.upsert_preferences(self.db, user_id, update_data)
        return self.get_user_preferences(user_id)

    # === In-App Notifications ===

    def create_notification(
        self,
        user_id: uuid.UUID,
        event_type: str,
        title: str,
        message: str,
        action_url: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        expires_days: int = 30,
    ) -> models.Notification:
        """Create an in-app notification."""
        expires_at = datetime.now(UTC) + timedelta(days=expires_days) if expires_days else None

        notification = models.Notification(
            user_id=user_id,
            event_type=event_type,
            title=title,
            message=message,
            action_url=action_url,
            metadata_json=metadata or {},
            expires_at=expires_at,
        )

        self.db.add(notification)
        self.db.commit()
        self.db.refresh(notification)

        return notification

    def _active_query(self, user_id: uuid.UUID):
        now = datetime.now(UTC)
        return self.db.query(models.Notification).filter(
            models.Notification.user_id == user_id,
            (models.Notification.expires_at.is_(None)) | (models.Notification.expires_at > now),
        )

    def get_user_notifications(
        self,
        user_id: uuid.UUID,
        unread_only: bool = False,
        limit: int = 20,
    ) -> List[models.Notification]:
        """Get non-expired notifications for a user, newest first."""
        query = self._active_query(user_id)
        if unread_only:
            query = query.filter(models.Notification.is_read.is_(False))
        return query.order_by(models.Notification.created_at.desc()).limit(limit).all()

    def get_total_count(self, user_id: uuid.UUID) -> int:
        return self._active_query(user_id).count()

    def get_unread_count(self, user_id: uuid.UUID) -> int:
        """Get count of unread notifications for a user."""
        return self._active_query(user_id).filter(models.Notification.is_read.is_(False)).count()

    def mark_notification_read(self, notification_id: uuid.UUID, user_id: uuid.UUID) -> Optional[models.Notification]:
        """Mark a notification as read. Returns None if it does not belong to the user."""
        notification = self.db.query(models.Notification).filter(
            models.Notification.id == notification_id,
            models.Notification.user_id == user_id,
        ).first()

        if notification is None:
            return None

        if not notification.is_read:
            notification.is_read = True
            notification.read_at = datetime.now(UTC)
            self.db.commit()
            self.db.refresh(notification)

        return notification

    def mark_all_read(self, user_id: uuid.UUID) -> int:
        """Mark every unread notification of the user as read. Returns the count."""
        count = self.db.query(models.Notification).filter(
            models.Notification.user_id == user_id,
            models.Notification.is_read.is_(False),
        ).update(
            {models.Notification.is_read: True, models.Notification.read_at: datetime.now(UTC)},
            synchronize_session=False,
        )
        self.db.commit()
        return count

    # === Email Logs ===

    def create_email_notification_log(
        self,
        email_address: str,
        event_type: str,
        subject: str,
        user_id: Optional[uuid.UUID] = None,
        notification_id: Optional[uuid.UUID] = None,
    ) -> models.EmailNotificationLog:
        email_log = models.EmailNotificationLog(
            notification_id=notification_id,
            user_id=user_id,
            email_address=email_address,
            event_type=event_type,
            subject=subject,
            status='pending',
        )
        self.db.add(email_log)
        self.db.commit()
        self.db.refresh(email_log)
        return email_log

    @staticmethod
    def _apply_email_status(
        email_log: models.EmailNotificationLog,
        status: str,
        provider_message_id: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> None:
        email_log.status = status
        if provider_message_id:
            email_log.provider_message_id = provider_message_id
        if error_message:
            email_log.error_message = error_message
        if status == 'sent':
            email_log.sent_at = datetime.now(UTC)

    def update_email_status(
        self,
        log_id: uuid.UUID,
        status: str,
        provider_message_id: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> Optional[models.EmailNotificationLog]:
        """Update the status of an email notification."""
        email_log = self.db.query(models.EmailNotificationLog).filter(
            models.EmailNotificationLog.id == log_id
        ).first()
        if email_log is None:
            return None
        self._apply_email_status(email_log, status, provider_message_id, error_message)
        self.db.commit()
        self.db.refresh(email_log)
        return email_log

    # === Targets ===

    def build_target(self, user: models.User) -> NotificationTarget:
        return NotificationTarget(
            user_id=user.id,
            email=user.email,
            name=user.name,
            preferences=self.get_user_preferences(user.id),
        )

    def get_admin_targets(self) -> List[NotificationTarget]:
        """All admins with their preferences (defaults when none are stored)."""
        admins = user_repo.get_admin_users(self.db)
        stored = notification_repo.get_preferences_for_users(self.db, [a.id for a in admins])
        targets = []
        for admin in admins:
            prefs = dict(DEFAULT_PREFERENCES)
            row = stored.get(admin.id)
            if row is not None:
                prefs.update({key: bool(getattr(row, key)) for key in DEFAULT_PREFERENCES})
            targets.append(NotificationTarget(user_id=admin.id, email=admin.email, name=admin.name, preferences=prefs))
        return targets

    # === Fan-out ===

    def notify(self, targets: List[NotificationTarget], payload: NotificationPayload) -> Dict[str, Any]:
        """Deliver ``payload`` to ``targets`` on every channel."""
        result: Dict[str, Any] = {'notifications': [], 'emails': [], 'slack': False, 'push': 0}
        notification_by_user: Dict[uuid.UUID, models.Notification] = {}

        for target in targets:
            notification = self.create_notification(
                user_id=target.user_id,
                event_type=payload.event_type,
                title=payload.title,
                message=payload.body,
                action_url=payload.url,
                metadata=payload.metadata,
            )
            notification_by_user[target.user_id] = notification
            result['notifications'].append(notification)

        result['slack'] = self._send_slack(targets, payload)

        for target in targets:
            notification = notification_by_user[target.user_id]
            self.connection_manager.emit(
                user_room(target.user_id),
                EVENT_NOTIFICATION,
                {
                    'id': notification.id,
                    'type': payload.event_type,
                    'title': payload.title,
                    'body': payload.body,
                    'url': payload.url,
                    'metadata': payload.metadata,
                    'received_at': datetime.now(UTC).isoformat(),
                },
            )

        result['push'] = self._send_push(targets, payload)

        if payload.template_name and payload.email_subject:
            for email_address, user_id in self.collect_email_recipients(targets, payload):
                notification = notification_by_user.get(user_id) if user_id else None
                email_log = self._send_email(
                    email_address=email_address,
                    user_id=user_id,
                    notification_id=notification.id if notification else None,
                    payload=payload,
                )
                result['emails'].append(email_log)

        return result

    def collect_email_recipients(
        self,
        targets: List[NotificationTarget],
        payload: NotificationPayload,
    ) -> List[Tuple[str, Optional[uuid.UUID]]]:
        """Managed recipients enabled for the event plus opted-in targets, deduplicated."""
        seen = set()
        recipients: List[Tuple[str, Optional[uuid.UUID]]] = []

        def _add(address: str, user_id: Optional[uuid.UUID]) -> None:
            key = (address or '').strip().lower()
            if key and key not in seen:
                seen.add(key)
                recipients.append((key, user_id))

        if payload.event_type == EVENT_TEST_NOTIFICATION:
            for target in targets:
                _add(target.email, target.user_id)
            return recipients

        flag = RECIPIENT_FLAG_FIELD.get(payload.event_type)
        if flag:
            for recipient in notification_repo.get_recipients(self.db):
                if getattr(recipient, flag):
                    _add(recipient.email, None)

        for target in targets:
            if target.preferences.get('email_enabled', True) is not False:
                _add(target.email, target.user_id)
        return recipients

    def _slack_eligible(self, targets: List[NotificationTarget], event_type: str) -> bool:
        pref_field = TYPE_PREFERENCE_FIELD.get(event_type)
        for target in targets:
            if not target.preferences.get('slack_enabled', True):
                continue
            if pref_field and not target.preferences.get(pref_field, True):
                continue
            return True
        return False

    def build_slack_blocks(self, payload: NotificationPayload) -> List[Dict[str, Any]]:
        blocks: List[Dict[str, Any]] = [
            {'type': 'header', 'text': {'type': 'plain_text', 'text': payload.title, 'emoji': True}},
            {'type': 'section', 'text': {'type': 'mrkdwn', 'text': payload.body.replace('**', '*')}},
        ]
        if payload.url:
            blocks.append({
                'type': 'context',
                'elements': [{'type': 'mrkdwn', 'text': f"<{build_app_url(payload.url)}|Open in Project Hub>"}],
            })
        return blocks

    def _send_slack(self, targets: List[NotificationTarget], payload: NotificationPayload) -> bool:
        if not self.slack_webhook_url:
            return False
        if not self._slack_eligible(targets, payload.event_type):
            return False
        try:
            response = requests.post(
                self.slack_webhook_url,
                json={'blocks': self.build_slack_blocks(payload)},
                timeout=SLACK_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("slack_notification_failed: event=%s error=%s", payload.event_type, exc)
            return False
        return True

    @property
    def push_configured(self) -> bool:
        return bool(self.vapid_public_key and self.vapid_private_key)

    def _push_eligible(self, targets: List[NotificationTarget], event_type: str) -> List[NotificationTarget]:
        pref_field = TYPE_PREFERENCE_FIELD.get(event_type)
        eligible = []
        for target in targets:
            if target.preferences.get('push_enabled', True) is False:
                continue
            if pref_field and target.preferences.get(pref_field, True) is False:
                continue
            eligible.append(target)
        return eligible

    def _send_push(self, targets: List[NotificationTarget], payload: NotificationPayload) -> int:
        """Send a Web Push message to every subscription of the opted-in targets.

        Returns the number of subscriptions the push service accepted.
        Subscriptions the service reports as gone are deleted.
        """
        if not self.push_configured:
            return 0
        eligible = self._push_eligible(targets, payload.event_type)
        subscriptions = notification_repo.get_push_subscriptions(self.db, [t.user_id for t in eligible])
        if not subscriptions:
            return 0

        data = json.dumps({
            'title': payload.title,
            'body': payload.body,
            'url': payload.url,
            'type': payload.event_type,
            'metadata': payload.metadata,
        }, default=str)

        delivered = 0
        for subscription in subscriptions:
            try:
                webpush(
                    subscription_info={
                        'endpoint': subscription.endpoint,
                        'keys': {'p256dh': subscription.p256dh, 'auth': subscription.auth},
                    },
                    data=data,
                    vapid_private_key=self.vapid_private_key,
                    vapid_claims={'sub': self.vapid_subject},
                    timeout=PUSH_TIMEOUT_SECONDS,
                )
            except WebPushException as exc:
                status_code = exc.response.status_code if exc.response is not None else None
                if status_code in PUSH_GONE_STATUSES:
                    logger.info("push_subscription_removed: id=%s status=%s", subscription.id, status_code)
                    notification_repo.delete_push_subscription(self.db, subscription.id)
                else:
                    logger.warning("push_notification_failed: id=%s error=%s", subscription.id, exc)
                continue
            delivered += 1
        return delivered

    def _send_email(
        self,
        email_address: str,
        user_id: Optional[uuid.UUID],
        notification_id: Optional[uuid.UUID],
        payload: NotificationPayload,
    ) -> models.EmailNotificationLog:
        email_log = self.create_email_notification_log(
            email_address=email_address,
            event_type=payload.event_type,
            subject=payload.email_subject,
            user_id=user_id,
            notification_id=notification_id,
        )

        if not email_delivery_enabled():
            return self.update_email_status(email_log.id, 'skipped', error_message='Email delivery disabled')

        try:
            html, text = self.email_service.render_template(payload.template_name, payload.template_context)
        except Exception as e:
            logger.error("email_render_failed: template=%s error=%s", payload.template_name, e)
            return self.update_email_status(email_log.id, 'failed', error_message=f'Template render failed: {str(e)}')

        log_id = email_log.id
        subject = payload.email_subject

        # Send in background thread so the API response isn't blocked
        def _send():
            try:
                send_res = asyncio.run(self.email_service.send_email(
                    to_email=email_address,
                    subject=subject,
                    html_content=html,
                    text_content=text,
                ))
            except Exception as e:
                send_res = {'success': False, 'error': str(e)}
            _record_email_result(log_id, send_res)

        t = threading.Thread(target=_send, daemon=True)
        t.start()
        return email_log

    # === Event helpers ===

    def notify_eod_submitted(self, eod: models.EodReport, user: models.User, project: models.Project) -> Dict[str, Any]:
        user_name = user.name or user.email
        url = '/admin/eods'
        payload = NotificationPayload(
            event_type=EVENT_EOD_SUBMITTED,
            title='📋 EOD Report Submitted',
            body=f"{user_name} submitted EOD for **{project.name}**",
            url=url,
            email_subject=f"{project.name} ({user_name}) - EOD Report",
            template_name=EVENT_EOD_SUBMITTED,
            template_context={
                'project_name': project.name,
                'user_name': user_name,
                'report_date': eod.report_date.isoformat(),
                'actual_update': eod.actual_update,
                'client_update': eod.client_update,
                'hours_spent': float(eod.hours_spent) if eod.hours_spent is not None else None,
                'action_url': build_app_url(url),
            },
            metadata={'eod_id': str(eod.id), 'project_id': str(project.id), 'user_id': str(user.id)},
        )
        return self.notify(self.get_admin_targets(), payload)

    def notify_memo_submitted(self, memo: models.Memo, user: models.User, project: models.Project) -> Dict[str, Any]:
        user_name = user.name or user.email
        url = '/admin/memos'
        payload = NotificationPayload(
            event_type=EVENT_MEMO_SUBMITTED,
            title='📝 Memo Submitted',
            body=f"{user_name} submitted a {memo.memo_type} memo for **{project.name}**",
            url=url,
            email_subject=f"{project.name} ({user_name}) - Memo",
            template_name=EVENT_MEMO_SUBMITTED,
            template_context={
                'project_name': project.name,
                'user_name': user_name,
                'report_date': memo.report_date.isoformat(),
                'memo_type': memo.memo_type,
                'memo_content': memo.memo_content,
                'action_url': build_app_url(url),
            },
            metadata={'memo_id': str(memo.id), 'project_id': str(project.id), 'user_id': str(user.id)},
        )
        return self.notify(self.get_admin_targets(), payload)

    def notify_project_assigned(self, user: models.User, project: models.Project, assigned_by_name: Optional[str] = None) -> Dict[str, Any]:
        url = f'/projects/{project.id}'
        payload = NotificationPayload(
            event_type=EVENT_PROJECT_ASSIGNED,
            title='🎯 New Project Assignment',
            body=f"You've been assigned to **{project.name}**",
            url=url,
            email_subject=f"{project.name} - New Assignment",
            template_name=EVENT_PROJECT_ASSIGNED,
            template_context={
                'project_name': project.name,
                'user_name': user.name or user.email,
                'assigned_by': assigned_by_name,
                'project_description': project.description,
                'action_url': build_app_url(url),
            },
            metadata={'project_id': str(project.id)},
        )
        return self.notify([self.build_target(user)], payload)

    def notify_project_created(self, project: models.Project, created_by: models.User) -> Dict[str, Any]:
        url = f'/projects/{project.id}'
        creator = created_by.name or created_by.email
        targets = [t for t in self.get_admin_targets() if t.user_id != created_by.id]
        payload = NotificationPayload(
            event_type=EVENT_PROJECT_CREATED,
            title='🚀 Project Created',
            body=f"{creator} created **{project.name}**",
            url=url,
            email_subject=f"{project.name} - New Project",
            template_name=EVENT_PROJECT_CREATED,
            template_context={
                'project_name': project.name,
                'created_by': creator,
                'project_description': project.description,
                'action_url': build_app_url(url),
            },
            metadata={'project_id': str(project.id)},
        )
        return self.notify(targets, payload)

    def send_test_notification(self, user: models.User) -> Dict[str, Any]:
        payload = NotificationPayload(
            event_type=EVENT_TEST_NOTIFICATION,
            title='🔔 Test Notification',
            body='Notifications are working. You will receive updates here.',
            url='/notifications',
            email_subject='Project Hub - Test Notification',
            template_name=EVENT_TEST_NOTIFICATION,
            template_context={
                'user_name': user.name or user.email,
                'action_url': build_app_url('/notifications'),
            },
        )
        return self.notify([self.build_target(user)], payload)

    # === Cleanup Methods ===

    def cleanup_expired_notifications(self) -> int:
        """
        Remove notifications that have exceeded their expiration date.
        Returns count of cleaned up notifications.
        """
        cutoff_date = datetime.now(UTC)

        expired_notifications = self.db.query(models.Notification).filter(
            models.Notification.expires_at <= cutoff_date
        )

        count = expired_notifications.count()
        expired_notifications.delete(synchronize_session=False)
        self.db.commit()

        return count


def _record_email_result(log_id: uuid.UUID, send_res: Dict[str, Any]) -> None:
    """Persist the outcome of a background send using its own session."""
    db = SessionLocal()
    try:
        email_log = db.query(models.EmailNotificationLog).filter(models.EmailNotificationLog.id == log_id).first()
        if email_log is None:
            return
        if send_res.get('success'):
            NotificationService._apply_email_status(email_log, 'sent', provider_message_id=send_res.get('message_id'))
        else:
            NotificationService._apply_email_status(email_log, 'failed', error_message=send_res.get('error'))
        db.commit()
    finally:
        db.close()


def get_notification_service(db: Session) -> NotificationService:
    """Get a NotificationService bound to the given session."""
    return NotificationService(db)
