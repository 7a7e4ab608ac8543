"""
EOD Closer - closes every open position and cancels every pending order at a
fixed local time each day, with a pre-alert a few minutes earlier.
"""

__version__ = "1.0.0"
