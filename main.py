import logging
import uuid
from datetime import timedelta
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from aggregation import build_summary_rows
from errors import NotFoundError, ShiftReportError
from export import build_workbook
from logging_config import setup_logging
from mailer import create_transport, send_summary_for_date, yesterday
from reports import delete_report, submit_report, visible_reports
from schemas import DailySummaryRow, Employee, Identity, ReportSubmission, ShiftReport, SummaryEmailResult
from security import hash_password, verify_password
from sessions import SessionStore
from settings import Settings, load_settings
from store import EmployeeDirectory, ReportStore, create_stores

logger = logging.getLogger(__name__)

settings = load_settings()
report_store, employee_directory = create_stores(settings)
session_store = SessionStore(ttl=timedelta(hours=settings.session_ttl_hours))

app = FastAPI(title="Shift Report API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
ROLES = ("employee", "manager")


# -------------------- Dependencies --------------------

def get_settings() -> Settings:
    return settings


def get_report_store() -> ReportStore:
    return report_store


def get_employee_directory() -> EmployeeDirectory:
    return employee_directory


def get_session_store() -> SessionStore:
    return session_store


def get_mail_transport(cfg: Settings = Depends(get_settings)):
    return create_transport(cfg)


# -------------------- Helpers --------------------

def employee_out(employee: Employee) -> Dict[str, Any]:
    return {"id": employee.id, "name": employee.full_name, "role": employee.role}


def ensure_manager_account(directory: EmployeeDirectory, cfg: Settings) -> Optional[Employee]:
    """Create the default manager when the directory has none."""
    if any(e.role == "manager" for e in directory.list()):
        logger.info("Manager account exists")
        return None
    manager = Employee(
        id=uuid.uuid4().hex,
        username=cfg.manager_username,
        full_name=cfg.manager_full_name,
        role="manager",
        password_hash=hash_password(cfg.manager_password),
        active=True,
    )
    directory.add(manager)
    logger.info("Default manager created: %s", manager.username)
    return manager


# -------------------- Startup --------------------
@app.on_event("startup")
def on_startup():
    setup_logging(settings.log_level, settings.log_json)
    try:
        ensure_manager_account(employee_directory, settings)
    except Exception:
        logger.exception("Manager seed failed")


# -------------------- Error handlers --------------------
@app.exception_handler(ShiftReportError)
async def shift_report_error_handler(request: Request, exc: ShiftReportError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unexpected error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Unexpected server error"})


# -------------------- Auth dependencies --------------------
class LoginRequest(BaseModel):
    username: str
    password: str


class CreateEmployeeRequest(BaseModel):
    username: str
    full_name: str
    role: str = Field("employee", description="employee | manager")
    password: str
    active: bool = True


class SendSummaryRequest(BaseModel):
    date: Optional[str] = None


def get_token(authorization: Optional[str] = Header(None)) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Not authenticated")
    return authorization[len("Bearer "):].strip()


def get_current_user(
    token: str = Depends(get_token),
    sessions: SessionStore = Depends(get_session_store),
    directory: EmployeeDirectory = Depends(get_employee_directory),
) -> Identity:
    employee_id = sessions.resolve(token)
    if not employee_id:
        raise HTTPException(status_code=401, detail="Invalid or expired session")
    employee = directory.get(employee_id)
    if not employee or not employee.active:
        raise HTTPException(status_code=401, detail="Employee inactive or not found")
    return Identity(id=employee.id, name=employee.full_name, role=employee.role)


def require_manager(user: Identity = Depends(get_current_user)) -> Identity:
    if not user.is_manager:
        raise HTTPException(status_code=403, detail="Manager access required")
    return user


# -------------------- Basic routes --------------------
@app.get("/")
def read_root():
    return {"message": "Shift Report API running"}


@app.get("/test")
def store_status(
    cfg: Settings = Depends(get_settings),
    store: ReportStore = Depends(get_report_store),
    directory: EmployeeDirectory = Depends(get_employee_directory),
):
    response = {
        "backend": "Running",
        "store_backend": cfg.store_backend,
        "store": "Not Available",
        "smtp": "Configured" if cfg.smtp_configured else "Not Configured",
    }
    try:
        response["employees"] = len(directory.list())
        response["reports"] = len(store.list())
        response["store"] = "Available"
    except Exception as e:
        logger.warning("Store check failed: %s", e)
        response["store"] = f"Error: {str(e)[:80]}"
    return response


# -------------------- Auth --------------------
@app.post("/api/auth/login")
def login(
    payload: LoginRequest,
    sessions: SessionStore = Depends(get_session_store),
    directory: EmployeeDirectory = Depends(get_employee_directory),
):
    employee = directory.find_by_username(payload.username)
    if not employee or not verify_password(payload.password, employee.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not employee.active:
        raise HTTPException(status_code=403, detail="Employee is inactive")
    token = sessions.create(employee.id)
    logger.info("Login %s", employee.username, extra={"employee_id": employee.id})
    return {"token": token, "employee": employee_out(employee)}


@app.get("/api/auth/me", response_model=Identity)
def me(user: Identity = Depends(get_current_user)):
    return user


@app.post("/api/auth/logout", status_code=204)
def logout(
    _: Identity = Depends(get_current_user),
    token: str = Depends(get_token),
    sessions: SessionStore = Depends(get_session_store),
):
    sessions.revoke(token)
    return Response(status_code=204)


# -------------------- Employees --------------------
@app.get("/api/employees")
def list_employees(
    _: Identity = Depends(get_current_user),
    directory: EmployeeDirectory = Depends(get_employee_directory),
):
    return [employee_out(e) for e in directory.list()]


@app.post("/api/employees", status_code=201)
def create_employee(
    payload: CreateEmployeeRequest,
    _: Identity = Depends(require_manager),
    directory: EmployeeDirectory = Depends(get_employee_directory),
):
    if payload.role not in ROLES:
        raise HTTPException(status_code=400, detail="Role must be employee or manager")
    if directory.find_by_username(payload.username):
        raise HTTPException(status_code=400, detail="Username already exists")
    employee = directory.add(Employee(
        id=uuid.uuid4().hex,
        username=payload.username,
        full_name=payload.full_name,
        role=payload.role,
        password_hash=hash_password(payload.password),
        active=payload.active,
    ))
    return employee_out(employee)


# -------------------- Reports --------------------
@app.get("/api/reports", response_model=List[ShiftReport])
def get_reports(
    date: Optional[str] = None,
    start: Optional[str] = None,
    end: Optional[str] = None,
    user: Identity = Depends(get_current_user),
    store: ReportStore = Depends(get_report_store),
):
    own = None if user.is_manager else user.id
    return visible_reports(store.list(date=date, start=start, end=end, employee_id=own), user)


@app.post("/api/reports", response_model=ShiftReport)
def post_report(
    payload: ReportSubmission,
    response: Response,
    user: Identity = Depends(get_current_user),
    store: ReportStore = Depends(get_report_store),
    directory: EmployeeDirectory = Depends(get_employee_directory),
):
    report, created = submit_report(store, directory, payload.model_dump(), user)
    response.status_code = 201 if created else 200
    return report


@app.delete("/api/reports/{report_id}", status_code=204)
def remove_report(
    report_id: str,
    user: Identity = Depends(get_current_user),
    store: ReportStore = Depends(get_report_store),
):
    delete_report(store, report_id, user)
    return Response(status_code=204)


# -------------------- Summary --------------------
def summary_scope(date: Optional[str], start: Optional[str], end: Optional[str]) -> Dict[str, str]:
    if date:
        return {"date": date}
    if start and end:
        return {"start": start, "end": end}
    raise HTTPException(status_code=400, detail="Provide date, or start and end")


def scope_label(scope: Dict[str, str]) -> str:
    return scope.get("date") or f"{scope['start']}_{scope['end']}"


@app.get("/api/summary", response_model=List[DailySummaryRow])
def summary(
    date: Optional[str] = None,
    start: Optional[str] = None,
    end: Optional[str] = None,
    user: Identity = Depends(get_current_user),
    store: ReportStore = Depends(get_report_store),
):
    scope = summary_scope(date, start, end)
    return build_summary_rows(visible_reports(store.list(**scope), user))


@app.get("/api/summary/export")
def export_summary(
    date: Optional[str] = None,
    start: Optional[str] = None,
    end: Optional[str] = None,
    user: Identity = Depends(get_current_user),
    store: ReportStore = Depends(get_report_store),
):
    scope = summary_scope(date, start, end)
    label = scope_label(scope)
    reports = visible_reports(store.list(**scope), user)
    if not reports:
        raise NotFoundError(f"no reports for {label}")
    content, file_name = build_workbook(label, reports, build_summary_rows(reports))
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )


@app.post("/api/admin/send-summary", response_model=SummaryEmailResult)
def send_summary(
    payload: Optional[SendSummaryRequest] = None,
    _: Identity = Depends(require_manager),
    cfg: Settings = Depends(get_settings),
    store: ReportStore = Depends(get_report_store),
    transport=Depends(get_mail_transport),
):
    target_date = (payload.date if payload else None) or yesterday(cfg.summary_timezone)
    return send_summary_for_date(store, target_date, cfg, transport=transport)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
