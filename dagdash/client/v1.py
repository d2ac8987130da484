"""
Client for the Airflow 2 REST API (/api/v1)
"""

from .base import AirflowClient


class AirflowV1Client(AirflowClient):
    """Airflow 2.x stable REST API"""

    API_PREFIX = 'api/v1'
    DAG_RUN_ORDER = '-execution_date'
