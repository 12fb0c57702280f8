"""Repository layer: DB access helpers (SQLite and PostgreSQL).

Keep functions thin and focused, so services and routes avoid SQL strings.
"""
