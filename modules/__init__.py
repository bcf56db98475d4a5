"""Helper modules for the Barcode Stock Web application."""

__all__ = [
    "naming",
    "report_inspector",
]
