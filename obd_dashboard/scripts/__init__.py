"""Command-line maintenance scripts (``python -m obd_dashboard.scripts.<name>``)."""
