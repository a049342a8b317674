"""
TaxDesk - GST practice management backend.

Deadline alerts and compliance reporting for tax practitioners.
"""

__version__ = "0.1.0"
