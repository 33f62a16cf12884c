"""
Backend API access.

The payments backend is an external HTTP service; this package holds its
settings and a thin `requests` wrapper used by the service layer.
"""
