"""
Handler for DonationRecorded events.

Writes a thank-you line to the donation log for every settled payment.
"""

import logging
from typing import Callable

from core.events import DonationRecorded


def handle_donation_recorded(donation_logger: logging.Logger) -> Callable:
    """
    Factory that returns a DonationRecorded handler.

    Args:
        donation_logger: Logger that receives the thank-you line

    Returns:
        Handler callable
    """

    def handler(event: DonationRecorded):
        donation = event.donation
        recipient = donation.recipient or "the cause"

        donation_logger.info(
            f"Thank you {donation.donor_name}: {donation.amount_sats} sats to {recipient} "
            f"(donation {donation.id})"
        )

    return handler
