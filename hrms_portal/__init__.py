"""HR and payroll administration portal"""

__version__ = "1.0.0"
