from fastapi import Request

from ..context import AppServices


def get_services(request: Request) -> AppServices:
    return request.app.state.services
