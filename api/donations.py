"""Donation ledger routes: aggregate stats, recent donations, receipts."""

from fastapi import APIRouter, Query, Request

from api.base import success_response
from api.middleware import get_request_id


def create_donations_router(services: dict) -> APIRouter:
    router = APIRouter(tags=["donations"])

    lifecycle = services["lifecycle"]

    @router.get("/donations/stats")
    def donation_stats(request: Request):
        stats = lifecycle.stats()
        return success_response(
            stats.model_dump(mode="json"), get_request_id(request)
        ).model_dump(mode="json")

    @router.get("/donations/recent")
    def recent_donations(request: Request, limit: int | None = Query(None, ge=1, le=100)):
        donations = lifecycle.recent(limit)
        return success_response(
            [d.model_dump(mode="json") for d in donations], get_request_id(request)
        ).model_dump(mode="json")

    @router.get("/donations/{payment_hash}/receipt")
    def donation_receipt(request: Request, payment_hash: str):
        receipt = lifecycle.receipt(payment_hash)
        return success_response(
            receipt.model_dump(mode="json"), get_request_id(request)
        ).model_dump(mode="json")

    return router
