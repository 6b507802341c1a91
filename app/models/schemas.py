"""Data schemas for the Databox application."""

import uuid
from typing import List, Optional, Dict, Any, Literal
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime, timezone


ColumnType = Literal[
    "varchar", "int", "bigint", "boolean", "datetime", "text", "json", "uuid", "decimal"
]
ProjectStatus = Literal["active", "paused", "inactive"]
ApiKeyType = Literal["anon", "service_role"]
PolicyCommand = Literal["SELECT", "INSERT", "UPDATE", "DELETE", "ALL"]
OAuthProvider = Literal["google", "github", "discord"]


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_id(prefix: str) -> str:
    """Random identifier with a readable prefix, e.g. ``table_3f9c...``."""
    return f"{prefix}_{uuid.uuid4().hex}"


# Schema Models
class ForeignKey(BaseModel):
    """Reference from a column to a column of another table. Not validated."""

    table: str
    column: str


class Column(BaseModel):
    """One slot of a user-defined table schema."""

    id: str = Field(default_factory=lambda: new_id("col"))
    name: str
    type: ColumnType
    length: Optional[int] = Field(default=None, ge=1)
    precision: Optional[int] = Field(default=None, ge=0)
    required: bool = False
    primary_key: bool = False
    unique: bool = False
    auto_increment: bool = False
    default_value: Optional[Any] = None
    foreign_key: Optional[ForeignKey] = None

    @property
    def is_generated(self) -> bool:
        """True when the store assigns this column's values."""
        return self.primary_key and self.auto_increment


# Row-Level Security Models
class RLSPolicyBase(BaseModel):
    """Declarative row-level security policy. Stored, never evaluated."""

    table_name: str
    name: str
    command: PolicyCommand = "ALL"
    roles: List[str] = Field(default_factory=list)
    using: str
    with_check: Optional[str] = None
    enabled: bool = True


class RLSPolicyCreate(RLSPolicyBase):
    """Model for creating RLS policies."""

    pass


class RLSPolicy(RLSPolicyBase):
    """Complete RLS policy model with stored fields."""

    id: str
    created_at: datetime


class Table(BaseModel):
    """A user-defined table together with its rows."""

    id: str
    name: str
    project_id: str
    columns: List[Column] = Field(default_factory=list)
    rows: List[Dict[str, Any]] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    row_count: int = 0
    is_realtime: bool = False
    rls_enabled: bool = False
    policies: List[RLSPolicy] = Field(default_factory=list)
    # Next value handed out to the generated column; never decreases
    next_serial: int = 1


# API Key Models
class ApiKey(BaseModel):
    """Credential scoped to one project."""

    id: str
    name: str
    key: str
    type: ApiKeyType
    permissions: List[str]
    created_at: datetime
    last_used_at: Optional[datetime] = None
    is_active: bool = True


# Project Configuration Models
class AuthConfig(BaseModel):
    """Authentication settings of a project."""

    enable_email_auth: bool = True
    enable_magic_link: bool = False
    enable_oauth: bool = False
    oauth_providers: List[OAuthProvider] = Field(default_factory=list)
    jwt_secret: str
    session_timeout: int = Field(default=3600, gt=0)


class StorageBucket(BaseModel):
    """A file storage bucket."""

    id: str
    name: str
    public: bool = False
    file_size_limit: str = "50MB"
    allowed_mime_types: List[str] = Field(default_factory=list)
    created_at: datetime


class StorageConfig(BaseModel):
    """File storage settings of a project."""

    buckets: List[StorageBucket] = Field(default_factory=list)
    max_file_size: str = "50MB"
    allowed_mime_types: List[str] = Field(default_factory=lambda: ["*"])


# Project Models
class ProjectBase(BaseModel):
    """Base model for project data."""

    name: str
    description: str = ""
    region: str


class ProjectCreate(ProjectBase):
    """Model for creating a new project."""

    pass


class ProjectUpdate(BaseModel):
    """Fields of a project the owner may change."""

    # Ids, owner and endpoints are fixed at creation
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    description: Optional[str] = None
    region: Optional[str] = None
    status: Optional[ProjectStatus] = None


class Project(ProjectBase):
    """Complete project model with its owned tables, keys and configuration."""

    id: str
    user_id: str
    status: ProjectStatus = "active"
    created_at: datetime
    updated_at: datetime
    database_url: str
    rest_url: str
    realtime_url: str
    storage_url: str
    edge_functions_url: str
    tables: List[Table] = Field(default_factory=list)
    api_keys: List[ApiKey] = Field(default_factory=list)
    auth_config: AuthConfig
    storage_config: StorageConfig
    rls_policies: List[RLSPolicy] = Field(default_factory=list)


# Request Models
class TableCreate(BaseModel):
    """Model for creating a table."""

    name: str
    columns: List[Column] = Field(default_factory=list)


class RLSToggle(BaseModel):
    """Model for enabling or disabling RLS on a table, or a single policy."""

    enabled: bool


class ApiKeyCreate(BaseModel):
    """Model for issuing API keys."""

    name: str
    type: ApiKeyType = "anon"


class AuthConfigUpdate(BaseModel):
    """Partial update of a project's auth settings."""

    enable_email_auth: Optional[bool] = None
    enable_magic_link: Optional[bool] = None
    enable_oauth: Optional[bool] = None
    oauth_providers: Optional[List[OAuthProvider]] = None
    session_timeout: Optional[int] = Field(default=None, gt=0)


class StorageConfigUpdate(BaseModel):
    """Partial update of a project's storage settings."""

    buckets: Optional[List[StorageBucket]] = None
    max_file_size: Optional[str] = None
    allowed_mime_types: Optional[List[str]] = None


class CurrentProjectSelect(BaseModel):
    """Selects the session's current project; ``None`` clears the selection."""

    project_id: Optional[str] = None


# Stats Models
class DatabaseStats(BaseModel):
    """Aggregate over a tenant's projects.

    ``total_tables`` and ``total_rows`` are exact. The usage counters are
    display placeholders and always zero; they carry no telemetry.
    """

    total_tables: int = 0
    total_rows: int = 0
    storage_used: str = "0 MB"
    api_calls: int = 0
    active_connections: int = 0
    realtime_connections: int = 0
    edge_function_invocations: int = 0


# Response Models
class ApiResponse(BaseModel):
    """Standard API response model."""

    success: bool
    message: Optional[str] = None
    data: Optional[Any] = None
