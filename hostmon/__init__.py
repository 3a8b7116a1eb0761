"""
hostmon - last-known-value measurement service on top of InfluxDB.
"""

__version__ = "1.0.0"
