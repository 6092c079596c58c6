"""Invoice routes: create, poll status, manual confirmation.

Routes are plain functions so Starlette runs them in its threadpool; the
lifecycle coordinator does its own locking and may block on the verifier.
"""

from fastapi import APIRouter, Request

from api.base import success_response
from api.middleware import get_request_id
from core.models import InvoiceCreate


def create_invoices_router(services: dict) -> APIRouter:
    router = APIRouter(tags=["invoices"])

    lifecycle = services["lifecycle"]
    render_qr = services.get("qr")

    @router.post("/invoices")
    def create_invoice(request: Request, body: InvoiceCreate):
        """Issue a payment request for a donation."""
        invoice = lifecycle.create_invoice(body)

        qr_code = None
        if render_qr is not None and invoice.payment_request:
            qr_code = render_qr(invoice.payment_request)

        data = {
            "invoice": invoice.payment_request,
            "payment_request": invoice.payment_request,
            "payment_hash": invoice.payment_hash,
            "qr_code": qr_code,
            "expires_in": lifecycle.expires_in(invoice),
            "expires_at": invoice.expires_at,
            "amount_sats": invoice.amount_sats,
            "donor_name": invoice.donor_name,
            "recipient": invoice.recipient,
        }
        return success_response(data, get_request_id(request)).model_dump(mode="json")

    @router.get("/invoices/{payment_hash}/status")
    def check_status(request: Request, payment_hash: str):
        """Poll an invoice. Unknown hashes report NOT_FOUND with HTTP 200."""
        report = lifecycle.check_status(payment_hash)
        return success_response(
            report.model_dump(mode="json"), get_request_id(request)
        ).model_dump(mode="json")

    @router.post("/invoices/{payment_hash}/confirm")
    def confirm_payment(request: Request, payment_hash: str):
        """Operator settlement outside the normal detection path."""
        report = lifecycle.confirm_payment(payment_hash)
        return success_response(
            report.model_dump(mode="json"), get_request_id(request)
        ).model_dump(mode="json")

    return router
