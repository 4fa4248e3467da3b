"""
models/ - Domain Layer
======================
Plain dataclasses and closed enumerations describing subscriptions,
their generated payments, and payment notifications.
No database or Telegram code lives here.
"""
