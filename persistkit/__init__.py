"""persistkit - relational persistence runtime.

Connection lifecycle, unit-of-work transaction boundaries, generic
row mapping and versioned schema migrations on top of SQLAlchemy's
async engine.
"""

__version__ = "0.1.0"
