"""Request-scoped dependencies."""

from fastapi import Request

from ...engine import RelevanceEngine


def get_engine(request: Request) -> RelevanceEngine:
    return request.app.state.engine
