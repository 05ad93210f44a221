"""
Assessment Analytics Core.

Market-analytics orchestration for the tax-assessment platform. The core
caches per-area market computations, runs background maintenance jobs, and
synthesizes historical time series for animated trend visualization. Data
comes from pluggable connectors and analytics modules supplied by the host
application.
"""

__version__ = "0.1.0"
