"""dagdash: a terminal dashboard for Apache Airflow."""

__version__ = "0.1.0"
