"""
Workshop Kernel

Infrastructure shared by the bicycle workshop modules:
- SQLAlchemy base classes, engine and session scope
- Post-commit change feed with live queries
- Explicit workflow tables and their executor
- Structured JSON logging and a typed exception hierarchy
"""

__version__ = "0.1.0"
