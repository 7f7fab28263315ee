"""
Domain models for the API manager.

These are the beans the storage layer hands out and the REST layer returns:
users and their role memberships, organizations, APIs with their versions,
plans and policies, plus the summary views the developer portal exposes.

Design decisions:
- Using Pydantic for validation and serialization
- Stored beans and the summaries built from them are separate models, so the
  portal never leaks fields it is not meant to show
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict


# =============================================================================
# Enums
# =============================================================================

class ApiVersionStatus(str, Enum):
    """Lifecycle of an API version."""
    CREATED = "Created"
    READY = "Ready"
    PUBLISHED = "Published"
    RETIRED = "Retired"


class ApiDefinitionType(str, Enum):
    """Kinds of API definition documents an API version may carry."""
    NO_DEFINITION = "None"
    SWAGGER_JSON = "SwaggerJSON"
    SWAGGER_YAML = "SwaggerYAML"
    WSDL = "WSDL"
    WADL = "WADL"
    RAML = "RAML"
    EXTERNAL = "External"

    @property
    def media_type(self) -> str:
        return _DEFINITION_MEDIA_TYPES.get(self, "application/octet-stream")


_DEFINITION_MEDIA_TYPES = {
    ApiDefinitionType.SWAGGER_JSON: "application/json",
    ApiDefinitionType.SWAGGER_YAML: "application/x-yaml",
    ApiDefinitionType.WSDL: "application/wsdl+xml",
    ApiDefinitionType.WADL: "application/vnd.sun.wadl+xml",
    ApiDefinitionType.RAML: "application/raml+yaml",
}


# =============================================================================
# Users and roles
# =============================================================================

class User(BaseModel):
    """
    A user known to the manager.

    Users arrive either from the fixtures or from SSO account-creation events.
    """
    username: str = Field(..., description="Unique login name")
    full_name: Optional[str] = Field(default=None, description="Display name")
    email: Optional[str] = Field(default=None, description="Address for email notifications")
    locale: Optional[str] = Field(default=None)
    admin: bool = Field(default=False, description="System administrator")
    joined_on: datetime = Field(default_factory=datetime.utcnow)


class UserDto(BaseModel):
    """The public view of a user, used as a notification recipient."""
    username: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    locale: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "UserDto":
        return cls(
            username=user.username,
            full_name=user.full_name,
            email=user.email,
            locale=user.locale,
        )


class RoleMembership(BaseModel):
    """
    Grants a role to a user.

    Global roles (such as the approver role) have no organization.
    """
    user_id: str = Field(..., description="Username of the member")
    role_id: str = Field(..., description="Role name")
    organization_id: Optional[str] = Field(default=None, description="Scope of the role")
    created_on: datetime = Field(default_factory=datetime.utcnow)


# =============================================================================
# Organizations
# =============================================================================

class Organization(BaseModel):
    id: str = Field(..., description="Identifier derived from the name")
    name: str
    description: Optional[str] = None
    created_by: Optional[str] = None
    created_on: datetime = Field(default_factory=datetime.utcnow)


class NewOrganization(BaseModel):
    """Request body for creating an organization."""
    name: str = Field(..., min_length=1)
    description: Optional[str] = None


# =============================================================================
# APIs, plans and policies
# =============================================================================

class Api(BaseModel):
    organization_id: str
    id: str
    name: str
    description: Optional[str] = None
    featured: bool = Field(default=False, description="Promoted on the portal landing page")
    created_on: datetime = Field(default_factory=datetime.utcnow)


class ApiPlan(BaseModel):
    """A plan a developer can sign up to for a given API version."""
    plan_id: str
    version: str
    requires_approval: bool = False


class ApiPolicy(BaseModel):
    """A policy applied to an API version."""
    definition_id: str
    configuration: Optional[str] = None
    order_index: int = 0


class ApiVersion(BaseModel):
    organization_id: str
    api_id: str
    version: str
    status: ApiVersionStatus = ApiVersionStatus.CREATED
    expose_in_portal: bool = Field(default=False, description="Visible to portal developers")
    definition_type: ApiDefinitionType = ApiDefinitionType.NO_DEFINITION
    definition: Optional[str] = Field(default=None, description="Raw definition document")
    plans: list[ApiPlan] = Field(default_factory=list)
    policies: list[ApiPolicy] = Field(default_factory=list)
    created_on: datetime = Field(default_factory=datetime.utcnow)
    published_on: Optional[datetime] = None


class Plan(BaseModel):
    organization_id: str
    id: str
    name: str
    description: Optional[str] = None


class PolicyDefinition(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None


# =============================================================================
# Summaries exposed by the developer portal
# =============================================================================

class ApiSummary(BaseModel):
    organization_id: str
    organization_name: str
    id: str
    name: str
    description: Optional[str] = None
    created_on: datetime


class ApiVersionSummary(BaseModel):
    organization_id: str
    organization_name: str
    id: str
    name: str
    description: Optional[str] = None
    status: ApiVersionStatus
    version: str
    expose_in_portal: bool

    model_config = ConfigDict(use_enum_values=True)


class DeveloperApiPlanSummary(BaseModel):
    plan_id: str
    plan_name: str
    plan_description: Optional[str] = None
    version: str
    requires_approval: bool


class ApiVersionPolicySummary(BaseModel):
    policy_definition_id: str
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
