"""Rentals app package.

This app is the rate catalog of the platform: rentable units with their
base nightly rate and fee structure, the date-bounded pricing rules that
override that rate, and the owner/maintenance blocks that take nights off
the market. Pricing rules of one unit never overlap while active; the
catalog rejects any write that would break that.
"""
