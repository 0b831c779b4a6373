"""
Reservation notifications sent through NotificationAPI.

The shop's web app delivers e-mail/SMS/in-app messages through
NotificationAPI templates. This module posts to its REST sender endpoint
when a reservation is approved, addressed to the customer's uid.

Sending is best effort: failures are logged and reported as False and
never undo the status change that triggered them.
"""

import asyncio
from typing import Any, Dict, Optional

import aiohttp

from models.booking import Booking
from utils.formatting import format_date_only
from utils.logging_config import setup_logging

logger = setup_logging(name=__name__, log_file="notifications.log")

APPROVE_BOOKING_NOTIFICATION = "approve_booking"


class BookingNotifier:
    """
    NotificationAPI sender.

    Credentials default to the notification_* settings; without them
    every send is skipped.
    """

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ):
        from config import settings

        self.client_id = client_id or settings.notification_client_id
        self.client_secret = client_secret or settings.notification_client_secret
        self.api_url = (api_url or settings.notification_api_url).rstrip("/")
        self.timeout = aiohttp.ClientTimeout(
            total=timeout_seconds or settings.notification_timeout_seconds
        )

    @property
    def enabled(self) -> bool:
        return bool(self.client_id and self.client_secret)

    async def send(
        self, notification_id: str, user_id: str, merge_tags: Dict[str, Any]
    ) -> bool:
        """
        Send one templated notification to a user.

        Returns:
            True if NotificationAPI accepted it, False otherwise
        """
        if not self.enabled:
            logger.debug(f"Notifications disabled, skipping {notification_id} for {user_id}")
            return False
        if not user_id:
            logger.warning(f"Cannot send {notification_id}: no user id")
            return False

        payload = {
            "notificationId": notification_id,
            "user": {"id": user_id},
            "mergeTags": merge_tags,
        }
        url = f"{self.api_url}/{self.client_id}/sender"
        auth = aiohttp.BasicAuth(self.client_id, self.client_secret)

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(url, json=payload, auth=auth) as response:
                    if response.status >= 400:
                        body = await response.text()
                        logger.warning(
                            f"NotificationAPI rejected {notification_id} for {user_id}: "
                            f"HTTP {response.status} {body}"
                        )
                        return False
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(
                f"Failed to send {notification_id} to {user_id}: {e}", exc_info=True
            )
            return False

        logger.info(f"Sent {notification_id} to {user_id}")
        return True

    async def notify_booking_approved(self, booking: Booking) -> bool:
        """Tell the customer their reservation was confirmed."""
        comment = (
            f"Your reservation for {booking.car or 'your car'} on "
            f"{format_date_only(booking.reservation_date)} has been confirmed."
        )
        return await self.send(
            APPROVE_BOOKING_NOTIFICATION,
            booking.customer_id or "",
            {"comment": comment, "bookingId": booking.id},
        )
