"""BYOC project lifecycle: statuses, models, API client and reconcilers."""

from .client import ByocAPIError, ByocClient, ByocHTTPError, base_url_for_region
from .errors import (
    ConsoleDeletionRequired,
    InvalidProjectState,
    ReconcileError,
    StatusCheckError,
)
from .inmemory import InMemoryProjectAPI
from .models import (
    AgentState,
    AWSProjectParams,
    AzureIdentity,
    AzureProjectParams,
    CreatedProject,
    CreateProjectRequest,
    ProjectDescription,
    ProjectHandle,
    ProjectState,
)
from .reconciler import AgentReconciler, ProjectAPI, ProjectReconciler
from .status import (
    CONNECTED_STATUS_CODE,
    INIT_STATUS_CODE,
    ProjectStatus,
    describe_status,
    status_from_code,
)
from .timeouts import DEFAULT_TIMEOUTS, OperationTimeouts

__all__ = [
    'AWSProjectParams',
    'AgentReconciler',
    'AgentState',
    'AzureIdentity',
    'AzureProjectParams',
    'ByocAPIError',
    'ByocClient',
    'ByocHTTPError',
    'CONNECTED_STATUS_CODE',
    'ConsoleDeletionRequired',
    'CreateProjectRequest',
    'CreatedProject',
    'DEFAULT_TIMEOUTS',
    'INIT_STATUS_CODE',
    'InMemoryProjectAPI',
    'InvalidProjectState',
    'OperationTimeouts',
    'ProjectAPI',
    'ProjectDescription',
    'ProjectHandle',
    'ProjectReconciler',
    'ProjectState',
    'ProjectStatus',
    'ReconcileError',
    'StatusCheckError',
    'base_url_for_region',
    'describe_status',
    'status_from_code',
]
