"""Bookings app package.

This app owns the reservation lifecycle of the platform: availability
checks, deterministic pricing of a stay, pending holds with an expiry
window, and the payment-confirmation step that settles racing bookings
for overlapping nights. All operations go through
``apps.bookings.application.engine.BookingEngine``.
"""
