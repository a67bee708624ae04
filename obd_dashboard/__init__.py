"""OBD Dashboard -- JSON API over OBD-II project, vehicle and telemetry data."""

__version__ = "0.1.0"
