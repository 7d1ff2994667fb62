"""Kernel service infrastructure."""

from payroll_kernel.services.base import BaseService

__all__ = ["BaseService"]
