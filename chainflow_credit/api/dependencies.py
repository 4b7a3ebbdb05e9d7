"""Dependency injection for FastAPI endpoints"""

from fastapi import Request

from chainflow_credit.services.facility import CreditFacility


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_facility(request: Request) -> CreditFacility:
    """Provide the credit facility attached to the application"""
    return request.app.state.facility
