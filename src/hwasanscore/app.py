import logging
from dataclasses import asdict
from functools import lru_cache
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from hwasanscore.config.logging_config import configure_logging
from hwasanscore.config.settings import settings
from hwasanscore.core.models import (
    AcademicRecord,
    Attendance,
    Behavior,
    BehaviorEntry,
    NonAcademicData,
    SemesterData,
    Volunteer,
)
from hwasanscore.core.non_academic import non_academic_breakdown
from hwasanscore.core.record import (
    UnknownSubjectError,
    semester_for,
    set_free_semester,
    set_non_academic,
    update_subject,
)
from hwasanscore.core.rounding import round_half_up
from hwasanscore.core.rules import (
    GRADE_SUBJECTS,
    RULESET_VERSION,
    RuleConfigurationError,
    applicable_fields,
    category_for,
    weights_for,
)
from hwasanscore.core.semester import InvalidTransitionError, UnknownSemesterError, parse_semester_key
from hwasanscore.core.total import score_summary, semester_points
from hwasanscore.core.validation import InputRangeError
from hwasanscore.services.school_directory import get_school, search_schools
from hwasanscore.services.serialization import non_academic_to_dict, record_to_dict, semester_to_dict
from hwasanscore.services.storage import Storage, StorageError


configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.api_title, version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_allowed_origins),
    allow_origin_regex=settings.cors_allow_origin_regex,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class SubjectEditPayload(BaseModel):
    component: str
    value: Optional[float] = None


class FreeSemesterPayload(BaseModel):
    enabled: bool


class AttendancePayload(BaseModel):
    absences: List[int] = Field(default_factory=lambda: [0, 0, 0], min_length=3, max_length=3)
    tardies: List[int] = Field(default_factory=lambda: [0, 0, 0], min_length=3, max_length=3)
    early_leaves: List[int] = Field(default_factory=lambda: [0, 0, 0], min_length=3, max_length=3)
    results: List[int] = Field(default_factory=lambda: [0, 0, 0], min_length=3, max_length=3)


class VolunteerPayload(BaseModel):
    hours: float = 0.0
    tier: str = "none"


class BehaviorEntryPayload(BaseModel):
    base: float = 3.0
    extra: float = 0.0


class BehaviorPayload(BaseModel):
    grade1: BehaviorEntryPayload = Field(default_factory=BehaviorEntryPayload)
    grade2: BehaviorEntryPayload = Field(default_factory=BehaviorEntryPayload)
    grade3: BehaviorEntryPayload = Field(default_factory=BehaviorEntryPayload)


class NonAcademicPayload(BaseModel):
    attendance: AttendancePayload = Field(default_factory=AttendancePayload)
    volunteer: VolunteerPayload = Field(default_factory=VolunteerPayload)
    behavior: BehaviorPayload = Field(default_factory=BehaviorPayload)

    def to_data(self) -> NonAcademicData:
        return NonAcademicData(
            attendance=Attendance(
                absences=tuple(self.attendance.absences),
                tardies=tuple(self.attendance.tardies),
                early_leaves=tuple(self.attendance.early_leaves),
                results=tuple(self.attendance.results),
            ),
            volunteer=Volunteer(hours=self.volunteer.hours, tier=self.volunteer.tier),
            behavior=Behavior(
                grade1=BehaviorEntry(**self.behavior.grade1.model_dump()),
                grade2=BehaviorEntry(**self.behavior.grade2.model_dump()),
                grade3=BehaviorEntry(**self.behavior.grade3.model_dump()),
            ),
        )


@lru_cache(maxsize=1)
def get_storage() -> Storage:
    return Storage.from_settings()


def _required_uid(x_user_id: Optional[str]) -> str:
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing x-user-id header")
    return x_user_id


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, (UnknownSemesterError, UnknownSubjectError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, InvalidTransitionError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, InputRangeError):
        return HTTPException(status_code=422, detail=str(exc))
    logger.error("Unexpected engine failure: %s", exc)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _load(storage: Storage, uid: str) -> AcademicRecord:
    try:
        return storage.load_record(uid)
    except StorageError as exc:
        raise _http_error(exc) from exc


def _semester_view(key: str, semester: SemesterData) -> Dict:
    grade, _ = parse_semester_key(key)
    payload = semester_to_dict(semester)
    for subject in payload["subjects"]:
        subject["editableFields"] = [] if semester.is_free_semester else list(applicable_fields(grade, subject["name"]))
    payload["key"] = key
    payload["points"] = round_half_up(semester_points(semester), 2)
    return payload


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok", "ruleset": RULESET_VERSION}


@app.get("/record")
def get_record(
    x_user_id: Optional[str] = Header(default=None),
    storage: Storage = Depends(get_storage),
) -> Dict:
    uid = _required_uid(x_user_id)
    record = _load(storage, uid)
    return {
        "uid": uid,
        "record": record_to_dict(record),
        "score": asdict(score_summary(record)),
        "bookmarks": storage.list_bookmarks(uid),
    }


@app.delete("/record")
def delete_record(
    x_user_id: Optional[str] = Header(default=None),
    storage: Storage = Depends(get_storage),
) -> Dict[str, str]:
    uid = _required_uid(x_user_id)
    storage.delete_record(uid)
    return {"status": "deleted"}


@app.get("/score")
def get_score(
    x_user_id: Optional[str] = Header(default=None),
    storage: Storage = Depends(get_storage),
) -> Dict:
    uid = _required_uid(x_user_id)
    record = _load(storage, uid)
    return {
        **asdict(score_summary(record)),
        "non_academic_breakdown": asdict(non_academic_breakdown(record.non_academic)),
    }


@app.get("/semesters/{key}")
def get_semester(
    key: str,
    x_user_id: Optional[str] = Header(default=None),
    storage: Storage = Depends(get_storage),
) -> Dict:
    uid = _required_uid(x_user_id)
    record = _load(storage, uid)
    try:
        return _semester_view(key, semester_for(record, key))
    except UnknownSemesterError as exc:
        raise _http_error(exc) from exc


@app.patch("/semesters/{key}/subjects/{subject}")
def edit_subject(
    key: str,
    subject: str,
    payload: SubjectEditPayload,
    x_user_id: Optional[str] = Header(default=None),
    storage: Storage = Depends(get_storage),
) -> Dict:
    uid = _required_uid(x_user_id)
    with storage.editing(uid):
        record = _load(storage, uid)
        try:
            record = update_subject(record, key, subject, payload.component, payload.value)
        except (UnknownSemesterError, UnknownSubjectError, InvalidTransitionError, InputRangeError) as exc:
            raise _http_error(exc) from exc
        storage.save_record(uid, record)
    return {
        "semester": _semester_view(key, record.semesters[key]),
        "score": asdict(score_summary(record)),
    }


@app.post("/semesters/{key}/free-semester")
def toggle_free(
    key: str,
    payload: FreeSemesterPayload,
    x_user_id: Optional[str] = Header(default=None),
    storage: Storage = Depends(get_storage),
) -> Dict:
    uid = _required_uid(x_user_id)
    with storage.editing(uid):
        record = _load(storage, uid)
        try:
            record = set_free_semester(record, key, payload.enabled)
        except UnknownSemesterError as exc:
            raise _http_error(exc) from exc
        storage.save_record(uid, record)
    return {
        "semester": _semester_view(key, record.semesters[key]),
        "score": asdict(score_summary(record)),
    }


@app.put("/non-academic")
def put_non_academic(
    payload: NonAcademicPayload,
    x_user_id: Optional[str] = Header(default=None),
    storage: Storage = Depends(get_storage),
) -> Dict:
    uid = _required_uid(x_user_id)
    with storage.editing(uid):
        record = _load(storage, uid)
        try:
            record = set_non_academic(record, payload.to_data())
        except InputRangeError as exc:
            raise _http_error(exc) from exc
        storage.save_record(uid, record)
    return {
        "non_academic": non_academic_to_dict(record.non_academic),
        "breakdown": asdict(non_academic_breakdown(record.non_academic)),
        "score": asdict(score_summary(record)),
    }


@app.get("/rules/{grade}/{half}")
def get_rules(grade: int, half: int) -> List[Dict]:
    if grade not in GRADE_SUBJECTS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown grade {grade}")
    rules = []
    for subject in GRADE_SUBJECTS[grade]:
        try:
            formula = weights_for(grade, half, subject)
        except RuleConfigurationError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
        rules.append(
            {
                "subject": subject,
                "formula": formula.name,
                "weights": dict(formula.weights),
                "applicable_fields": list(applicable_fields(grade, subject)),
                "category": category_for(subject),
            }
        )
    return rules


@app.get("/schools")
def list_schools(q: str = "") -> List[Dict]:
    return [asdict(school) for school in search_schools(q)]


@app.get("/schools/{school_id}")
def school_detail(school_id: str) -> Dict:
    school = get_school(school_id)
    if school is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown school {school_id}")
    return asdict(school)


@app.get("/bookmarks")
def list_bookmarks(
    x_user_id: Optional[str] = Header(default=None),
    storage: Storage = Depends(get_storage),
) -> List[Dict]:
    uid = _required_uid(x_user_id)
    schools = [get_school(school_id) for school_id in storage.list_bookmarks(uid)]
    return [asdict(school) for school in schools if school is not None]


@app.post("/bookmarks/{school_id}")
def add_bookmark(
    school_id: str,
    x_user_id: Optional[str] = Header(default=None),
    storage: Storage = Depends(get_storage),
) -> Dict[str, str]:
    uid = _required_uid(x_user_id)
    if get_school(school_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown school {school_id}")
    storage.add_bookmark(uid, school_id)
    return {"status": "bookmarked"}


@app.delete("/bookmarks/{school_id}")
def remove_bookmark(
    school_id: str,
    x_user_id: Optional[str] = Header(default=None),
    storage: Storage = Depends(get_storage),
) -> Dict[str, str]:
    uid = _required_uid(x_user_id)
    storage.remove_bookmark(uid, school_id)
    return {"status": "removed"}
