from fastapi import Request

from app.core.clock import Clock
from app.core.db import get_session
from app.services.command_service import CommandInterpreter

__all__ = ["get_session", "get_clock", "get_interpreter"]


def get_clock(request: Request) -> Clock:
    return request.app.state.clock


def get_interpreter(request: Request) -> CommandInterpreter:
    """The interpreter built in the app lifespan; it holds the process-wide reminder scheduler."""
    return request.app.state.interpreter
