"""
services/ - Business Logic Layer
================================
Schedule generation, financial aggregation, and the use-cases the bot exposes.
Services receive their repositories through the constructor so they can run
against PostgreSQL in production and in-memory fakes in tests.
"""
