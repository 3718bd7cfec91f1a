"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import AvailabilityService, BookingSourceProtocol, professionals_for_service

__all__ = ["AvailabilityService", "BookingSourceProtocol", "professionals_for_service"]
