"""
Base Airflow REST client
"""

import logging
from datetime import datetime, time, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from ..config import ServerConfig
from ..models import DagRunDateFilter
from .api import PAGE_SIZE, DagRunsAPI, DagsAPI, LogsAPI, TaskInstancesAPI, TasksAPI
from .auth import create_auth
from .exceptions import AirflowAPIError, AirflowAuthenticationError, AirflowNotFoundError

logger = logging.getLogger(__name__)


def _error_detail(response: requests.Response) -> str:
    """Pull a readable message out of an Airflow problem response"""
    try:
        body = response.json()
    except ValueError:
        return response.text.strip()[:200] or response.reason
    if isinstance(body, dict):
        return str(body.get('detail') or body.get('title') or body)
    return str(body)


class AirflowClient:
    """
    Airflow REST client for one configured server

    Usage:
        client = create_client(server_config)
        dags = client.dags.list()
        runs = client.dag_runs.list('example_dag')

    Subclasses pin the API prefix and the few request shapes that differ
    between Airflow major versions.
    """

    API_PREFIX = 'api/v1'
    DAG_RUN_ORDER = '-execution_date'
    DAG_RUN_DATE_FIELD = 'execution_date'

    def __init__(self, server: ServerConfig, session: Optional[requests.Session] = None):
        self.server = server
        self.endpoint = server.endpoint.rstrip('/')
        self.timeout = server.timeout_secs
        self.session = session or requests.Session()
        self.session.auth = create_auth(server.auth)

        # Initialize API endpoints
        self.dags = DagsAPI(self)
        self.dag_runs = DagRunsAPI(self)
        self.task_instances = TaskInstancesAPI(self)
        self.tasks = TasksAPI(self)
        self.logs = LogsAPI(self)

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self.server.name!r}, {self.endpoint!r})'

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict] = None,
        json: Optional[Dict] = None,
        headers: Optional[Dict] = None,
    ) -> Any:
        """Make HTTP request to API"""
        url = f'{self.endpoint}/{self.API_PREFIX}/{path.lstrip("/")}'
        logger.debug('%s %s', method, url)

        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=json,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.Timeout:
            raise TimeoutError(f'Request to {url} timed out after {self.timeout}s')
        except requests.HTTPError as e:
            status = e.response.status_code
            detail = _error_detail(e.response)
            message = f'{method} {path} failed ({status}): {detail}'
            if status == 401:
                raise AirflowAuthenticationError(message) from e
            if status == 404:
                raise AirflowNotFoundError(message) from e
            raise AirflowAPIError(message, status_code=status) from e

        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError:
            return response.text

    def _paginate(self, path: str, key: str, params: Optional[Dict] = None) -> List[Dict[str, Any]]:
        """Collect every page of a list endpoint"""
        items: List[Dict[str, Any]] = []
        offset = 0
        while True:
            page_params = dict(params or {})
            page_params.update({'limit': PAGE_SIZE, 'offset': offset})
            page = self._request('GET', path, params=page_params) or {}
            batch = page.get(key, [])
            items.extend(batch)
            total = page.get('total_entries', len(items))
            if len(batch) < PAGE_SIZE or len(items) >= total:
                break
            offset += len(batch)
        logger.debug('Fetched %d %s from %s', len(items), key, path)
        return items

    # Version-specific request shapes

    def dag_source_path(self, dag_id: str, file_token: str) -> str:
        return f'dagSources/{file_token}'

    def date_filter_params(self, date_filter: DagRunDateFilter) -> Dict[str, str]:
        """Query parameters bounding the run listing to whole UTC days"""
        params = {}
        if date_filter.start is not None:
            start = datetime.combine(date_filter.start, time.min, tzinfo=timezone.utc)
            params[f'{self.DAG_RUN_DATE_FIELD}_gte'] = start.isoformat()
        if date_filter.end is not None:
            end = datetime.combine(date_filter.end, time.max, tzinfo=timezone.utc)
            params[f'{self.DAG_RUN_DATE_FIELD}_lte'] = end.isoformat()
        return params

    def trigger_body(self) -> Dict[str, Any]:
        return {}

    def decode_log_content(self, content: Any) -> str:
        if content is None:
            return ''
        return str(content)

    def web_url(
        self,
        dag_id: Optional[str] = None,
        dag_run_id: Optional[str] = None,
        task_id: Optional[str] = None,
    ) -> str:
        """Link to the Airflow web UI for a DAG, run or task instance"""
        if dag_id is None:
            return self.endpoint
        url = f'{self.endpoint}/dags/{quote(dag_id)}/grid'
        query = []
        if dag_run_id:
            query.append(f'dag_run_id={quote(dag_run_id)}')
        if task_id:
            query.append(f'task_id={quote(task_id)}')
        if query:
            url += '?' + '&'.join(query)
        return url

    def close(self):
        """Close the session"""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
