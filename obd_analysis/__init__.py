"""OBD Analysis -- data-munging helpers for the OBD-II dashboard.

Parses and normalises project import files, fits telemetry trends,
summarises readiness monitors and pivots vehicle comparison series.

This package has no knowledge of HTTP or the database so it can be
exercised directly from scripts and tests.
"""

__version__ = "0.1.0"
