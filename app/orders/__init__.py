"""
Orders app - the order record that payments are taken against.

Order composition (items, menu lookups, scheduling) is owned elsewhere.
This app carries the fields and status transitions the payment core
needs: total, items, status, payment_status and contact details.
"""
