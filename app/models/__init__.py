from .report import StoredReport

__all__ = ['StoredReport']
