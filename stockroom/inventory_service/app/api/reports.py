"""Report snapshot endpoints."""

from __future__ import annotations

from datetime import timezone

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from stockroom.common import ServiceSettings

from ..dependencies import get_report_service, get_service_settings
from ..schemas import ReportCreate, ReportPage, ReportResponse
from ..services import ReportService

router = APIRouter(prefix="/reports", tags=["reports"])


def _serialize_report(report) -> dict[str, object]:
    created_at = report.created_at
    if created_at is not None and created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return {
        "id": report.id,
        "period": report.period,
        "startDate": report.start_date,
        "endDate": report.end_date,
        "totalItems": report.total_items,
        "totalValue": float(report.total_value),
        "lowStockCount": report.low_stock_count,
        "outOfStockCount": report.out_of_stock_count,
        "notes": report.notes,
        "createdAt": created_at,
    }


@router.get("", response_model=ReportPage | list[ReportResponse])
async def list_reports(
    page: int | None = Query(default=None, ge=1),
    per_page: int | None = Query(default=None, alias="perPage", ge=1, le=500),
    service: ReportService = Depends(get_report_service),
    settings: ServiceSettings = Depends(get_service_settings),
) -> ReportPage | list[ReportResponse]:
    repository = service.reports
    if page is None:
        reports = await repository.list_reports()
        return [ReportResponse.model_validate(_serialize_report(report)) for report in reports]

    size = per_page or settings.default_per_page
    total = await repository.count_reports()
    reports = await repository.list_reports(limit=size, offset=(page - 1) * size)
    data = [ReportResponse.model_validate(_serialize_report(report)) for report in reports]
    return ReportPage(data=data, total=total, page=page, perPage=size)


@router.get("/{report_id}", response_model=ReportResponse)
async def get_report(report_id: int, service: ReportService = Depends(get_report_service)) -> ReportResponse:
    report = await service.reports.get_report(report_id)
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")
    return ReportResponse.model_validate(_serialize_report(report))


@router.post("", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def create_report(
    payload: ReportCreate,
    service: ReportService = Depends(get_report_service),
) -> ReportResponse:
    try:
        report = await service.create_report(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return ReportResponse.model_validate(_serialize_report(report))


@router.delete("/{report_id}")
async def delete_report(report_id: int, service: ReportService = Depends(get_report_service)) -> Response:
    report = await service.reports.get_report(report_id)
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")
    await service.reports.delete_report(report)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
