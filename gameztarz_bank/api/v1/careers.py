"""Education and job endpoints"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from gameztarz_bank.api.dependencies import get_request_id, load_settled_account, unit_of_work
from gameztarz_bank.api.v1.schemas import AccountResponse, EnrollRequest, EnrollmentSchema, JobRequest
from gameztarz_bank.domain.catalog import COURSES, JOBS
from gameztarz_bank.domain.operations import enroll, select_job
from gameztarz_bank.infrastructure.database.repositories import AccountRepository, FeePoolRepository
from gameztarz_bank.infrastructure.database.session import get_db

router = APIRouter()


@router.get("/courses")
def list_courses():
    return [asdict(course) for course in COURSES.values()]


@router.get("/jobs")
def list_jobs():
    return [asdict(job) for job in JOBS.values()]


@router.post("/accounts/{account_id}/education", response_model=EnrollmentSchema, status_code=201)
def enroll_in_course(account_id: str, body: EnrollRequest, request: Request, db: Session = Depends(get_db)):
    """Pay tuition into the fee pool; the course completes after its duration"""
    request_id = get_request_id(request)
    with unit_of_work(db, request_id):
        account, now = load_settled_account(db, account_id, request_id)
        tuition = enroll(account, body.course_id, now)
        AccountRepository(db).save(account)
        FeePoolRepository(db).credit(tuition, f"Tuition for {body.course_id}")
    return EnrollmentSchema.model_validate(account.education[-1])


@router.put("/accounts/{account_id}/job", response_model=AccountResponse)
def take_job(account_id: str, body: JobRequest, request: Request, db: Session = Depends(get_db)):
    request_id = get_request_id(request)
    with unit_of_work(db, request_id):
        account, now = load_settled_account(db, account_id, request_id)
        select_job(account, body.job_id, now)
        AccountRepository(db).save(account)
    return AccountResponse.model_validate(account)
