"""FastAPI dependencies that hand out the app-scoped connection registries."""

from fastapi import Request

from creatorcompass.realtime.connections import ConnectionManager


def get_notification_streams(request: Request) -> ConnectionManager:
    return request.app.state.notification_streams


def get_analytics_streams(request: Request) -> ConnectionManager:
    return request.app.state.analytics_streams


def get_heartbeat_interval(request: Request) -> float:
    return request.app.state.sse_heartbeat_seconds
