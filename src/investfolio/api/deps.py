"""Dependency injection for FastAPI."""

from investfolio.app_context import get_app_context
from investfolio.services import InvestmentService


async def get_investment_service() -> InvestmentService:
    """
    Provide the process-wide InvestmentService instance.

    Runs on the event loop thread like every route; the service and its
    database session are not thread-safe.
    """
    context = get_app_context()
    if not context.is_initialized:
        context.initialize()
    return context.investments
