"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .booking_service import BookingService, EntityStoreProtocol
from .report_service import ReportService

__all__ = ["BookingService", "EntityStoreProtocol", "ReportService"]
