"""
Data schemas for the Shift Report API

Each stored model maps to a collection (lowercased class name) when the
MongoDB backend is used, or to a JSON file under the data directory otherwise.

Note: dates are kept as ISO strings (YYYY-MM-DD) and timestamps as ISO
datetime strings so records round-trip unchanged through either backend.
Stored records written by earlier revisions used camelCase keys
(employeeId, visitorsCount, ...); they are accepted on read through aliases.
"""

from pydantic import AliasChoices, AliasGenerator, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel
from typing import Any, List, Optional

from security import hash_password

# camelCase keys are accepted on input only; output always uses field names
LEGACY_KEYS = AliasGenerator(validation_alias=to_camel)


class Employee(BaseModel):
    """
    Employees and managers
    Collection: "employee"
    """
    id: str = Field(..., description="Opaque employee id")
    username: str = Field(..., description="Unique login username")
    full_name: str = Field(..., description="Employee full name",
                           validation_alias=AliasChoices("full_name", "name"))
    role: str = Field("employee", description="employee | manager")
    password_hash: str = Field("", description="SHA256 salted password hash")
    active: bool = Field(True, description="Is the employee active")

    @model_validator(mode="before")
    @classmethod
    def hash_legacy_password(cls, data: Any) -> Any:
        # older employee files store a plaintext "password"; it is hashed on
        # read and the next directory write persists only the hash
        if isinstance(data, dict) and data.get("password") and not data.get("password_hash"):
            data = dict(data)
            data["password_hash"] = hash_password(str(data.pop("password")))
        return data


class Identity(BaseModel):
    """Caller identity handed to the report operations."""
    id: str
    name: str
    role: str

    @property
    def is_manager(self) -> bool:
        return self.role == "manager"


class ShiftReport(BaseModel):
    """
    One submitted shift report
    Collection: "report"
    Unique on (employee_id, shift, date).
    """
    model_config = ConfigDict(alias_generator=LEGACY_KEYS, populate_by_name=True, extra="ignore")

    id: str = Field(..., description="Opaque report id, immutable")
    employee_id: str = Field(..., description="Employee the report belongs to")
    employee_name: str = Field("", description="Employee name at write time")
    shift: str = Field(..., description="Night | Morning | Evening")
    date: str = Field(..., description="Shift date (YYYY-MM-DD)")
    day_name: str = Field("", description="Weekday of the shift date")
    shift_start: str = Field("", description="Shift start time (HH:MM)")
    shift_end: str = Field("", description="Shift end time (HH:MM)")

    visitors_count: int = 0
    calls_count: int = 0
    social_media_count: int = 0
    entry_count: int = 0
    exit_count: int = 0

    needs: str = ""
    tasks_completed: str = ""
    issues: str = ""
    handover_notes: str = ""
    notes: str = ""

    productivity_score: Optional[float] = Field(None, description="0-100, None when not rated")
    daily_revenue: Optional[float] = Field(None, description="Evaluated daily revenue expression")
    total_revenue: Optional[float] = Field(None, description="Evaluated total revenue expression")

    submitted_by: str = Field("", description="Id of the caller who wrote the record")
    updated_at: str = Field("", description="Last write timestamp ISO (UTC)")

    def natural_key(self) -> tuple:
        return (self.employee_id, self.shift, self.date)


class DailySummaryRow(BaseModel):
    """Per-employee aggregate over a set of reports. Never persisted."""
    employee_id: str
    employee_name: str
    total_shifts: int
    total_visitors: int = 0
    total_calls: int = 0
    total_social_media: int = 0
    total_entry: int = 0
    total_exit: int = 0
    total_daily_revenue: float = 0.0
    total_revenue: float = 0.0
    productivity_average: Optional[float] = None
    needs: List[str] = Field(default_factory=list)
    tasks: List[str] = Field(default_factory=list)
    issues: List[str] = Field(default_factory=list)
    handover_notes: List[str] = Field(default_factory=list)


class ReportSubmission(BaseModel):
    """
    Raw report payload as sent by a client.

    Every field is untrusted: counters may arrive as strings or garbage and
    are coerced by the normalizer instead of being rejected here.
    """
    model_config = ConfigDict(alias_generator=LEGACY_KEYS, populate_by_name=True, extra="ignore")

    employee_id: Optional[Any] = None
    shift: Optional[Any] = None
    date: Optional[Any] = None
    visitors_count: Optional[Any] = None
    calls_count: Optional[Any] = None
    social_media_count: Optional[Any] = None
    entry_count: Optional[Any] = None
    exit_count: Optional[Any] = None
    needs: Optional[Any] = None
    tasks_completed: Optional[Any] = None
    issues: Optional[Any] = None
    handover_notes: Optional[Any] = None
    notes: Optional[Any] = None
    productivity_score: Optional[Any] = None
    daily_revenue: Optional[Any] = None
    total_revenue: Optional[Any] = None


class SummaryEmailResult(BaseModel):
    """
    Outcome of a summary email run. One of:
      sent=True with message_id,
      sent=False with reason NO_REPORTS,
      sent=False with reason TRANSPORT_NOT_CONFIGURED and saved_to.
    """
    sent: bool
    date: str
    message_id: Optional[str] = None
    reason: Optional[str] = None
    saved_to: Optional[str] = None
