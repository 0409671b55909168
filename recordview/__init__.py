"""Client-side record views for the staffing CRM."""

__version__ = "0.1.0"
