"""Yachts app package.

Holds the fleet catalogue: every yacht that can be chartered, its booking
mode and the date from which the hourly booking policy applies to it.
"""
