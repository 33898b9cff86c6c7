from fastapi import Request

from doremi.services import PublishingServices


def get_services(request: Request) -> PublishingServices:
    """The PublishingServices owned by the running app."""
    return request.app.state.services
