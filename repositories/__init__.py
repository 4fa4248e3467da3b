"""
repositories/ - Data Access Layer
==================================
Each repository encapsulates all SQL queries for a specific domain entity.
Repositories receive raw rows from the database and return domain model objects.
Services depend only on the method names, so any object exposing the same
methods (e.g. an in-memory store) can stand in for a repository.
"""
