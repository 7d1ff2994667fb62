"""Read-only query layer."""

from payroll_kernel.selectors.base import BaseSelector

__all__ = ["BaseSelector"]
