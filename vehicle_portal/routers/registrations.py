"""Vehicle registration endpoints, thin wiring over registration_service."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Response, UploadFile, status
from sqlalchemy.orm import Session

from vehicle_portal.config import Settings, get_settings
from vehicle_portal.database import get_db
from vehicle_portal.dependencies import get_current_account, get_notifier
from vehicle_portal.models.account import Account
from vehicle_portal.schemas.registration import (
    RegistrationOut, RegistrationStats, RegistrationUpdate, ReportRequest, StatusUpdate,
)
from vehicle_portal.services import errors, registration_service, report_service, storage_service
from vehicle_portal.services.notification_service import Notifier

router = APIRouter(prefix="/registrations")


def _pdf(content: Optional[bytes], filename: str) -> Response:
    if content is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                            detail="Report generation is currently unavailable")
    return Response(content=content, media_type="application/pdf",
                    headers={"Content-Disposition": f'attachment; filename="{filename}"'})


@router.post("", response_model=RegistrationOut, status_code=status.HTTP_201_CREATED,
             summary="Submit a vehicle registration")
def submit(
    vehicle_type: Optional[str] = Form(None),
    make: Optional[str] = Form(None),
    model: Optional[str] = Form(None),
    year: Optional[str] = Form(None),
    vin: Optional[str] = Form(None),
    license_plate: Optional[str] = Form(None),
    owner_name: Optional[str] = Form(None),
    owner_contact: Optional[str] = Form(None),
    expiry_date: Optional[str] = Form(None),
    documents: list[UploadFile] = File(default=[]),
    db: Session = Depends(get_db),
    config: Settings = Depends(get_settings),
    current: Account = Depends(get_current_account),
):
    """Multipart form; supporting documents are stored before the record is created."""
    fields = {
        "vehicle_type": vehicle_type, "make": make, "model": model, "year": year,
        "vin": vin, "license_plate": license_plate, "owner_name": owner_name,
        "owner_contact": owner_contact, "expiry_date": expiry_date,
    }
    references = storage_service.save_documents(documents, config)
    try:
        return registration_service.submit_registration(db, current, fields, references)
    except errors.PortalError:
        storage_service.discard_documents(references, config)
        raise


@router.get("", response_model=list[RegistrationOut], summary="List registrations")
def list_registrations(db: Session = Depends(get_db), current: Account = Depends(get_current_account)):
    """Admins get every registration; users get their own, newest first."""
    return registration_service.list_registrations(db, current)


@router.get("/search", response_model=list[RegistrationOut], summary="Search by VIN or license plate")
def search(
    query: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    current: Account = Depends(get_current_account),
):
    return registration_service.search_registrations(db, current, query)


@router.get("/stats", response_model=RegistrationStats, summary="Admin — counts by status and type")
def stats(db: Session = Depends(get_db), current: Account = Depends(get_current_account)):
    return registration_service.registration_stats(db, current)


@router.post("/report", summary="PDF report over selected registrations")
def report(body: ReportRequest, db: Session = Depends(get_db), current: Account = Depends(get_current_account)):
    if not body.ids:
        raise errors.ValidationError("Select at least one registration for the report")
    records = [registration_service.get_registration(db, current, rid) for rid in dict.fromkeys(body.ids)]
    return _pdf(report_service.render_report(records), "vehicle_report.pdf")


@router.get("/{registration_id}", response_model=RegistrationOut, summary="Get one registration")
def get_one(registration_id: int, db: Session = Depends(get_db),
            current: Account = Depends(get_current_account)):
    return registration_service.get_registration(db, current, registration_id)


@router.put("/{registration_id}", response_model=RegistrationOut, summary="Edit vehicle details")
def edit(
    registration_id: int,
    body: RegistrationUpdate,
    db: Session = Depends(get_db),
    current: Account = Depends(get_current_account),
):
    """A non-admin edit sends the registration back to Pending."""
    return registration_service.edit_registration(
        db, current, registration_id, body.model_dump(exclude_none=True))


@router.delete("/{registration_id}", summary="Delete a registration")
def delete(
    registration_id: int,
    db: Session = Depends(get_db),
    config: Settings = Depends(get_settings),
    current: Account = Depends(get_current_account),
):
    documents = registration_service.delete_registration(db, current, registration_id)
    storage_service.discard_documents(documents, config)
    return {"status": "removed", "id": registration_id}


@router.put("/{registration_id}/status", response_model=RegistrationOut, summary="Admin — approve or reject")
def review(
    registration_id: int,
    body: StatusUpdate,
    db: Session = Depends(get_db),
    current: Account = Depends(get_current_account),
    notifier: Notifier = Depends(get_notifier),
):
    return registration_service.review_registration(db, current, registration_id, body.status, notifier)


@router.put("/{registration_id}/renew", response_model=RegistrationOut, summary="Extend expiry by one year")
def renew(
    registration_id: int,
    db: Session = Depends(get_db),
    current: Account = Depends(get_current_account),
    notifier: Notifier = Depends(get_notifier),
):
    return registration_service.renew_registration(db, current, registration_id, notifier)


@router.get("/{registration_id}/certificate", summary="PDF certificate for one registration")
def certificate(registration_id: int, db: Session = Depends(get_db),
                current: Account = Depends(get_current_account)):
    registration = registration_service.get_registration(db, current, registration_id)
    return _pdf(report_service.render_certificate(registration),
                f"Vehicle_Reg_{registration.license_plate}.pdf")
