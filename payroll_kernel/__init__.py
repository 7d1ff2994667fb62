"""
Payroll Kernel

Shared infrastructure for the payroll back-office core:
- Typed exception hierarchy
- Structured JSON logging
- SQLAlchemy base classes, engine and immutability listeners
- Pure domain primitives (clock, workflow, money)
"""

__version__ = "0.1.0"
