"""
Test suite for the Dental Appointment Booking service.

Contains API and service tests for availability, booking, the admin panel
and the booking function.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
