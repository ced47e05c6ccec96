"""Sort bank transactions into keyword-defined spending categories."""

__version__ = "0.1.0"
