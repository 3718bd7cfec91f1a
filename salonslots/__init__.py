"""
salonslots - appointment slot availability for salon and barbershop bookings.
"""

__version__ = "0.1.0"
