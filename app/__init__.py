"""
Dental Appointment Booking

A FastAPI service for booking patient appointments against a hosted
database, with a provider admin panel and a booking function that hands
confirmed bookings to an RPA workflow.
"""

__version__ = "1.0.0"
