"""
TaxDesk - Routers Package

FastAPI route handlers.

Routers:
- notifications: Deadline scan trigger and practitioner inbox
- reports: Period reports (compliance, revenue, returns, notices, payments)
- analytics: Dashboard metrics (compliance trend, revenue, top clients)
"""
