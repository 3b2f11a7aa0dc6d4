from datetime import date
from fastapi import APIRouter, Depends
from typing import Optional
from sqlalchemy.orm import Session
from casalar.api.deps import get_db
from casalar.core.auth import require_admin
from casalar.schemas import DashboardResponse, MonthlyRevenueResponse
from casalar.services import reports

router = APIRouter(dependencies=[Depends(require_admin)])

@router.get('/dashboard', response_model=DashboardResponse)
def dashboard(db: Session = Depends(get_db), startDate: Optional[date] = None, endDate: Optional[date] = None):
    return DashboardResponse(data=reports.get_dashboard_stats(db, start=startDate, end=endDate))

@router.get('/revenue-monthly', response_model=MonthlyRevenueResponse)
def revenue_monthly(db: Session = Depends(get_db)):
    return MonthlyRevenueResponse(data=reports.get_monthly_revenue(db))
