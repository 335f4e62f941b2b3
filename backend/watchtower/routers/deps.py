"""Request dependencies shared by the routers."""

from typing import Annotated

from fastapi import Header, Request

from watchtower.core.engine import ReportingEngine
from watchtower.core.session import Identity


def get_engine(request: Request) -> ReportingEngine:
    """Engine created during application startup."""
    return request.app.state.engine


def get_identity(
    x_user_id: Annotated[str, Header(min_length=1, max_length=128)],
    x_email_verified: Annotated[bool, Header()] = False,
    x_bypass_email_verification: Annotated[bool, Header()] = False,
) -> Identity:
    """
    Identity forwarded by the upstream identity provider / gateway.

    The service trusts these headers; it never authenticates users itself.
    """
    return Identity(
        user_id=x_user_id,
        email_verified=x_email_verified,
        bypass_email_verification=x_bypass_email_verification,
    )
