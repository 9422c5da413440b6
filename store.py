"""
Report and employee stores.

Two backends implement the same small interface:

  * JSON files under the data directory. Every write rewrites the whole
    collection through a temp file and os.replace, so a crash mid-write
    leaves the previous file intact. Concurrent writers are last-writer-wins.
  * MongoDB collections "report" and "employee", used when STORE_BACKEND=mongo.

The report operations only talk to these interfaces, so the backend can be
swapped without touching validation or aggregation.
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from schemas import Employee, ShiftReport
from settings import Settings

logger = logging.getLogger(__name__)


# -------------------- Interfaces --------------------

class ReportStore(ABC):
    @abstractmethod
    def list(
        self,
        date: Optional[str] = None,
        start: Optional[str] = None,
        end: Optional[str] = None,
        employee_id: Optional[str] = None,
    ) -> List[ShiftReport]:
        ...

    @abstractmethod
    def get(self, report_id: str) -> Optional[ShiftReport]:
        ...

    @abstractmethod
    def upsert(self, record: ShiftReport) -> ShiftReport:
        """Insert, or replace the record with the same id or (employee_id, shift, date)."""

    @abstractmethod
    def delete(self, report_id: str) -> bool:
        ...


class EmployeeDirectory(ABC):
    @abstractmethod
    def list(self) -> List[Employee]:
        ...

    @abstractmethod
    def get(self, employee_id: str) -> Optional[Employee]:
        ...

    @abstractmethod
    def find_by_username(self, username: str) -> Optional[Employee]:
        ...

    @abstractmethod
    def add(self, employee: Employee) -> Employee:
        ...


def matches(report: ShiftReport, date=None, start=None, end=None, employee_id=None) -> bool:
    if date and report.date != date:
        return False
    if start and report.date < start:
        return False
    if end and report.date > end:
        return False
    if employee_id and report.employee_id != employee_id:
        return False
    return True


# -------------------- JSON files --------------------

def read_json(path: Path, fallback: Any) -> Any:
    """Load a JSON file, creating it with fallback when it does not exist."""
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        write_json(path, fallback)
        return fallback


def write_json(path: Path, data: Any) -> None:
    """Each write gets its own temp file, so concurrent writers never share one."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=path.name + ".", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh, ensure_ascii=False, indent=2)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


class JsonReportStore(ReportStore):
    def __init__(self, path: Path):
        self.path = Path(path)

    def _load(self) -> List[ShiftReport]:
        return [ShiftReport.model_validate(item) for item in read_json(self.path, [])]

    def _save(self, reports: List[ShiftReport]) -> None:
        write_json(self.path, [r.model_dump() for r in reports])

    def list(self, date=None, start=None, end=None, employee_id=None) -> List[ShiftReport]:
        return [r for r in self._load() if matches(r, date, start, end, employee_id)]

    def get(self, report_id: str) -> Optional[ShiftReport]:
        for report in self._load():
            if report.id == report_id:
                return report
        return None

    def upsert(self, record: ShiftReport) -> ShiftReport:
        reports = self._load()
        for index, report in enumerate(reports):
            if report.id == record.id or report.natural_key() == record.natural_key():
                reports[index] = record
                break
        else:
            reports.append(record)
        self._save(reports)
        return record

    def delete(self, report_id: str) -> bool:
        reports = self._load()
        remaining = [r for r in reports if r.id != report_id]
        if len(remaining) == len(reports):
            return False
        self._save(remaining)
        return True


class JsonEmployeeDirectory(EmployeeDirectory):
    def __init__(self, path: Path):
        self.path = Path(path)

    def list(self) -> List[Employee]:
        return [Employee.model_validate(item) for item in read_json(self.path, [])]

    def get(self, employee_id: str) -> Optional[Employee]:
        return next((e for e in self.list() if e.id == employee_id), None)

    def find_by_username(self, username: str) -> Optional[Employee]:
        return next((e for e in self.list() if e.username == username), None)

    def add(self, employee: Employee) -> Employee:
        employees = self.list()
        employees.append(employee)
        write_json(self.path, [e.model_dump() for e in employees])
        return employee


# -------------------- MongoDB --------------------

def doc_to_dict(doc: Dict[str, Any]) -> Dict[str, Any]:
    if not doc:
        return doc
    doc = dict(doc)
    if "_id" in doc:
        doc["id"] = str(doc.pop("_id"))
    return doc


def to_document(model) -> Dict[str, Any]:
    doc = model.model_dump()
    doc["_id"] = doc.pop("id")
    return doc


def employee_filter(employee_id: str) -> Dict[str, Any]:
    # legacy documents spell the key employeeId
    return {"$or": [{"employee_id": employee_id}, {"employeeId": employee_id}]}


class MongoReportStore(ReportStore):
    def __init__(self, db):
        self.collection = db["report"]

    def list(self, date=None, start=None, end=None, employee_id=None) -> List[ShiftReport]:
        filt: Dict[str, Any] = {}
        if date:
            filt["date"] = date
        elif start or end:
            dr: Dict[str, Any] = {}
            if start:
                dr["$gte"] = start
            if end:
                dr["$lte"] = end
            filt["date"] = dr
        if employee_id:
            filt.update(employee_filter(employee_id))
        # insertion order, so summaries keep first-appearance order
        cursor = self.collection.find(filt).sort("$natural", 1)
        return [ShiftReport.model_validate(doc_to_dict(d)) for d in cursor]

    def get(self, report_id: str) -> Optional[ShiftReport]:
        doc = self.collection.find_one({"_id": report_id})
        return ShiftReport.model_validate(doc_to_dict(doc)) if doc else None

    def upsert(self, record: ShiftReport) -> ShiftReport:
        # _id is immutable, so another document on the same natural key is removed
        self.collection.delete_many({
            **employee_filter(record.employee_id),
            "shift": record.shift,
            "date": record.date,
            "_id": {"$ne": record.id},
        })
        self.collection.replace_one({"_id": record.id}, to_document(record), upsert=True)
        return record

    def delete(self, report_id: str) -> bool:
        return self.collection.delete_one({"_id": report_id}).deleted_count > 0


class MongoEmployeeDirectory(EmployeeDirectory):
    def __init__(self, db):
        self.collection = db["employee"]

    def list(self) -> List[Employee]:
        return [Employee.model_validate(doc_to_dict(d)) for d in self.collection.find({}).sort("full_name")]

    def get(self, employee_id: str) -> Optional[Employee]:
        doc = self.collection.find_one({"_id": employee_id})
        return Employee.model_validate(doc_to_dict(doc)) if doc else None

    def find_by_username(self, username: str) -> Optional[Employee]:
        doc = self.collection.find_one({"username": username})
        return Employee.model_validate(doc_to_dict(doc)) if doc else None

    def add(self, employee: Employee) -> Employee:
        self.collection.insert_one(to_document(employee))
        return employee


def create_stores(settings: Settings) -> Tuple[ReportStore, EmployeeDirectory]:
    if settings.store_backend == "mongo":
        from database import db
        if db is None:
            raise RuntimeError("STORE_BACKEND=mongo requires DATABASE_URL and DATABASE_NAME")
        logger.info("Using MongoDB stores")
        return MongoReportStore(db), MongoEmployeeDirectory(db)
    logger.info("Using JSON file stores in %s", settings.data_dir)
    return (
        JsonReportStore(settings.data_dir / "reports.json"),
        JsonEmployeeDirectory(settings.data_dir / "employees.json"),
    )
