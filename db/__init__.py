"""
db/ - Database Layer
====================
PostgreSQL connection pool, the transaction() helper, and the
users/subscriptions/payments schema.
"""
