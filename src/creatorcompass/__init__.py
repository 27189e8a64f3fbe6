"""CreatorCompass realtime backend.

Notification and analytics delivery for CreatorCompass: persisted
notifications, notification preferences, scheduled reminders, metric
snapshots, and best-effort server-sent-event streams per user.
"""

__version__ = "0.1.0"
