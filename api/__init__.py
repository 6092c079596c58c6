"""HTTP surface of the donation service: routers, error mapping, request IDs."""

from api.donations import create_donations_router
from api.errors import register_error_handlers
from api.invoices import create_invoices_router
from api.middleware import RequestIDMiddleware

__all__ = [
    "create_donations_router",
    "create_invoices_router",
    "register_error_handlers",
    "RequestIDMiddleware",
]
