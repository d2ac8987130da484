"""
Endpoint groups shared by every Airflow API version
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ..models import (
    Dag,
    DagRun,
    DagRunDateFilter,
    DagStatistic,
    Task,
    TaskInstance,
    TaskLog,
    TaskTry,
    parse_dag_stats,
)

if TYPE_CHECKING:
    from .base import AirflowClient

logger = logging.getLogger(__name__)

PAGE_SIZE = 50


class DagsAPI:
    """DAG endpoints"""

    def __init__(self, client: 'AirflowClient'):
        self.client = client

    def list(self) -> List[Dag]:
        """List every DAG, following pagination"""
        items = self.client._paginate('dags', 'dags')
        return [Dag.from_dict(d) for d in items]

    def toggle(self, dag_id: str, is_paused: bool) -> None:
        """Flip the paused flag of a DAG

        Args:
            dag_id: DAG to update
            is_paused: The DAG's current paused flag (the new one is its negation)
        """
        self.client._request(
            'PATCH',
            f'dags/{dag_id}',
            params={'update_mask': 'is_paused'},
            json={'is_paused': not is_paused},
        )

    def source(self, dag_id: str, file_token: str = '') -> str:
        """Fetch the DAG file source code

        Args:
            dag_id: DAG whose source to fetch
            file_token: Signed file token from the DAG listing (Airflow 2 only)
        """
        response = self.client._request(
            'GET',
            self.client.dag_source_path(dag_id, file_token),
            headers={'Accept': 'application/json'},
        )
        if isinstance(response, dict):
            return response.get('content') or ''
        return response or ''

    def stats(self, dag_ids: List[str]) -> Dict[str, List[DagStatistic]]:
        """Run-state counts per DAG"""
        if not dag_ids:
            return {}
        response = self.client._request('GET', 'dagStats', params={'dag_ids': ','.join(dag_ids)})
        return parse_dag_stats(response or {})


class DagRunsAPI:
    """DAG run endpoints"""

    def __init__(self, client: 'AirflowClient'):
        self.client = client

    def list(
        self, dag_id: str, limit: int = 100, date_filter: Optional[DagRunDateFilter] = None
    ) -> List[DagRun]:
        """List the most recent runs of a DAG, newest first

        Args:
            dag_id: DAG whose runs to list
            limit: Maximum number of runs
            date_filter: Optional inclusive logical date range
        """
        params = {'order_by': self.client.DAG_RUN_ORDER, 'limit': limit}
        if date_filter is not None:
            params.update(self.client.date_filter_params(date_filter))
        response = self.client._request('GET', f'dags/{dag_id}/dagRuns', params=params)
        return [DagRun.from_dict(r) for r in (response or {}).get('dag_runs', [])]

    def mark(self, dag_id: str, dag_run_id: str, status: str) -> None:
        self.client._request('PATCH', f'dags/{dag_id}/dagRuns/{dag_run_id}', json={'state': status})

    def clear(self, dag_id: str, dag_run_id: str) -> None:
        self.client._request(
            'POST', f'dags/{dag_id}/dagRuns/{dag_run_id}/clear', json={'dry_run': False}
        )

    def trigger(self, dag_id: str) -> Dict[str, Any]:
        """Trigger a new run of a DAG

        Returns:
            The created DAG run as returned by the server
        """
        return self.client._request(
            'POST', f'dags/{dag_id}/dagRuns', json=self.client.trigger_body()
        )


class TaskInstancesAPI:
    """Task instance endpoints"""

    def __init__(self, client: 'AirflowClient'):
        self.client = client

    def list(self, dag_id: str, dag_run_id: str) -> List[TaskInstance]:
        items = self.client._paginate(
            f'dags/{dag_id}/dagRuns/{dag_run_id}/taskInstances', 'task_instances'
        )
        return [TaskInstance.from_dict(t) for t in items]

    def tries(self, dag_id: str, dag_run_id: str, task_id: str) -> List[TaskTry]:
        """Every attempt of one task instance, oldest first"""
        response = self.client._request(
            'GET', f'dags/{dag_id}/dagRuns/{dag_run_id}/taskInstances/{task_id}/tries'
        )
        tries = [TaskTry.from_dict(t) for t in (response or {}).get('task_instances', [])]
        return sorted(tries, key=lambda t: t.try_number)

    def mark(self, dag_id: str, dag_run_id: str, task_id: str, status: str) -> None:
        self.client._request(
            'PATCH',
            f'dags/{dag_id}/dagRuns/{dag_run_id}/taskInstances/{task_id}',
            json={'new_state': status, 'dry_run': False},
        )

    def clear(self, dag_id: str, dag_run_id: str, task_id: str) -> None:
        """Clear one task instance and everything downstream of it"""
        self.client._request(
            'POST',
            f'dags/{dag_id}/clearTaskInstances',
            json={
                'dry_run': False,
                'task_ids': [task_id],
                'dag_run_id': dag_run_id,
                'include_downstream': True,
                'only_failed': False,
                'reset_dag_runs': True,
            },
        )


class TasksAPI:
    """Task definition endpoints"""

    def __init__(self, client: 'AirflowClient'):
        self.client = client

    def list(self, dag_id: str) -> List[Task]:
        response = self.client._request('GET', f'dags/{dag_id}/tasks')
        return [Task.from_dict(t) for t in (response or {}).get('tasks', [])]


class LogsAPI:
    """Task log endpoints"""

    def __init__(self, client: 'AirflowClient'):
        self.client = client

    def get(self, dag_id: str, dag_run_id: str, task_id: str, try_number: int) -> TaskLog:
        response = self.client._request(
            'GET',
            f'dags/{dag_id}/dagRuns/{dag_run_id}/taskInstances/{task_id}/logs/{try_number}',
            params={'full_content': 'true'},
            headers={'Accept': 'application/json'},
        )
        if not isinstance(response, dict):
            return TaskLog(try_number=try_number, content=response or '')
        return TaskLog(
            try_number=try_number,
            content=self.client.decode_log_content(response.get('content')),
            continuation_token=response.get('continuation_token'),
        )
