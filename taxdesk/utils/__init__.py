"""
TaxDesk - Utilities
"""
