"""
Client for the Airflow 3 REST API (/api/v2)
"""

import json
from typing import Any, Dict, Optional
from urllib.parse import quote

from .base import AirflowClient


class AirflowV2Client(AirflowClient):
    """Airflow 3.x REST API"""

    API_PREFIX = 'api/v2'
    DAG_RUN_ORDER = '-logical_date'
    DAG_RUN_DATE_FIELD = 'logical_date'

    def dag_source_path(self, dag_id: str, file_token: str) -> str:
        return f'dagSources/{dag_id}'

    def trigger_body(self) -> Dict[str, Any]:
        # Airflow 3 requires the key; null lets the scheduler pick it
        return {'logical_date': None}

    def decode_log_content(self, content: Any) -> str:
        """Flatten structured log messages into text lines"""
        if content is None:
            return ''
        if isinstance(content, str):
            return content
        lines = []
        for entry in content:
            if not isinstance(entry, dict):
                lines.append(str(entry))
                continue
            parts = []
            if entry.get('timestamp'):
                parts.append(str(entry['timestamp']))
            for key, value in entry.items():
                if key in ('timestamp', 'event'):
                    continue
                parts.append(f'{key}: {json.dumps(value) if not isinstance(value, str) else value}')
            parts.append(str(entry.get('event', '')))
            lines.append(' | '.join(parts))
        return '\n'.join(lines)

    def web_url(
        self,
        dag_id: Optional[str] = None,
        dag_run_id: Optional[str] = None,
        task_id: Optional[str] = None,
    ) -> str:
        if dag_id is None:
            return self.endpoint
        url = f'{self.endpoint}/dags/{quote(dag_id)}'
        if dag_run_id:
            url += f'/runs/{quote(dag_run_id)}'
            if task_id:
                url += f'/tasks/{quote(task_id)}'
        return url
