"""In-memory representations of BYOC projects and their agents.

The reconcilers only ever hand these back to the caller; persisting them
across runs is the caller's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .status import INIT_STATUS_CODE, ProjectStatus, status_from_code

# Deploy type the control plane expects for infrastructure-as-code driven
# BYOC-I projects.
TERRAFORM_DEPLOY_TYPE = 7

PENDING_STATUS_CODE = 0


@dataclass(frozen=True, slots=True)
class ProjectHandle:
    """Address of one remote project instance. Never mutated."""

    project_id: str
    data_plane_id: str

    def __post_init__(self) -> None:
        if not self.project_id:
            raise ValueError('project_id is required')
        if not self.data_plane_id:
            raise ValueError('data_plane_id is required')

    def as_params(self) -> dict[str, str]:
        return {'projectId': self.project_id, 'dataPlaneId': self.data_plane_id}


# ── Create request ───────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class AWSProjectParams:
    """AWS placement for a BYOC-I data plane."""

    region: str
    bucket_id: str
    storage_role_arn: str
    eks_role_arn: str
    bootstrap_role_arn: str
    vpc_id: str
    subnet_ids: tuple[str, ...] = ()
    security_group_ids: tuple[str, ...] = ()
    vpc_endpoint_id: str | None = None
    cse_role_arn: str | None = None
    cse_key_arn: str | None = None
    cse_external_id: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            'bucketId': self.bucket_id,
            'storageRoleArn': self.storage_role_arn,
            'eksRoleArn': self.eks_role_arn,
            'bootstrapRoleArn': self.bootstrap_role_arn,
            'userVpcId': self.vpc_id,
            'subnetIds': list(self.subnet_ids),
            'securityGroupIds': list(self.security_group_ids),
            'endpointId': self.vpc_endpoint_id,
        }
        if self.cse_role_arn is not None:
            payload['awsCseRoleArn'] = self.cse_role_arn
            payload['defaultAwsCseKeyArn'] = self.cse_key_arn or ''
            payload['externalId'] = self.cse_external_id or ''
        return payload


@dataclass(frozen=True, slots=True)
class AzureIdentity:
    client_id: str
    resource_id: str
    principal_id: str

    def to_payload(self) -> dict[str, str]:
        return {
            'clientId': self.client_id,
            'resourceId': self.resource_id,
            'principalId': self.principal_id,
        }


@dataclass(frozen=True, slots=True)
class AzureProjectParams:
    """Azure placement for a BYOC-I data plane."""

    region: str
    vnet_id: str
    storage_account_name: str
    container_name: str
    kubelet_identity: AzureIdentity
    maintenance_identity: AzureIdentity
    subnet_ids: tuple[str, ...] = ()
    nsg_ids: tuple[str, ...] = ()
    storage_identities: tuple[AzureIdentity, ...] = ()
    private_endpoint_id: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            'vnetId': self.vnet_id,
            'subnetIds': list(self.subnet_ids),
            'nsgIds': list(self.nsg_ids),
            'privateEndpointId': self.private_endpoint_id,
            'storageAccountName': self.storage_account_name,
            'containerName': self.container_name,
            'storageIdentities': [i.to_payload() for i in self.storage_identities],
            'kubeletIdentity': self.kubelet_identity.to_payload(),
            'maintenanceIdentity': self.maintenance_identity.to_payload(),
        }


@dataclass(frozen=True, slots=True)
class CreateProjectRequest:
    """Caller-supplied configuration for a new BYOC-I project.

    Exactly one of ``aws`` / ``azure`` must be set.
    """

    project_id: str
    data_plane_id: str
    aws: AWSProjectParams | None = None
    azure: AzureProjectParams | None = None
    ext_config: str | None = None
    deploy_type: int = TERRAFORM_DEPLOY_TYPE

    def __post_init__(self) -> None:
        if (self.aws is None) == (self.azure is None):
            raise ValueError('exactly one of aws or azure must be configured')

    @property
    def handle(self) -> ProjectHandle:
        return ProjectHandle(self.project_id, self.data_plane_id)

    @property
    def cloud_id(self) -> str:
        return 'aws' if self.aws is not None else 'azure'

    @property
    def region_id(self) -> str:
        params = self.aws if self.aws is not None else self.azure
        return params.region

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            'projectId': self.project_id,
            'dataPlaneId': self.data_plane_id,
            'cloudId': self.cloud_id,
            'regionId': self.region_id,
            'deployType': self.deploy_type,
        }
        if self.aws is not None:
            payload['awsParam'] = self.aws.to_payload()
        if self.azure is not None:
            payload['azureParam'] = self.azure.to_payload()
        if self.ext_config is not None:
            payload['extConfig'] = self.ext_config
        return payload


# ── Remote responses ─────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class CreatedProject:
    """What the control plane returns for an accepted create."""

    project_id: str
    data_plane_id: str
    job_id: str = ''


@dataclass(frozen=True, slots=True)
class ProjectDescription:
    """One describe call's view of a project."""

    project_id: str
    data_plane_id: str
    status_code: int
    op_token: str | None = None
    message: str = ''

    @property
    def status(self) -> ProjectStatus:
        return status_from_code(self.status_code)

    @property
    def handle(self) -> ProjectHandle:
        return ProjectHandle(self.project_id, self.data_plane_id)


# ── Local state ──────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class ProjectState:
    """Caller-facing representation of a reconciled project."""

    handle: ProjectHandle
    id: str | None = None
    status_code: int = PENDING_STATUS_CODE
    ext_config: str | None = None
    request: CreateProjectRequest | None = field(default=None, compare=False)

    @property
    def status(self) -> ProjectStatus:
        return status_from_code(self.status_code)

    @property
    def project_id(self) -> str:
        return self.handle.project_id

    @property
    def data_plane_id(self) -> str:
        return self.handle.data_plane_id


@dataclass(frozen=True, slots=True)
class AgentState:
    """Caller-facing representation of a project's data-plane agent."""

    handle: ProjectHandle
    status_code: int = INIT_STATUS_CODE
    wait_until_ready: bool = False

    @property
    def status(self) -> ProjectStatus:
        return status_from_code(self.status_code)

    @property
    def id(self) -> str:
        return self.handle.project_id
