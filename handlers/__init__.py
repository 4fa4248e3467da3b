"""
handlers/ - Presentation Layer
================================
Telegram command handlers for subscriptions, payments, reports and exports.
They parse command arguments, call a service, and turn ValidationError and
NotFoundError into friendly replies.
"""
