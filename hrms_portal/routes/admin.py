from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from typing import Optional
import logging

from hrms_portal.core.notifications import Notifier
from hrms_portal.core.session import SessionController
from hrms_portal.dependencies import get_notifier, get_payroll_service, guarded_session
from hrms_portal.services.payroll_service import PayrollForm, PayrollService, PayslipForm
from hrms_portal.utils.rendering import render_page

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin"])

SECTIONS = ("overview", "employees", "payroll")
DIALOGS = ("payroll", "payslip")

def _render_dashboard(
    request: Request,
    session: SessionController,
    notifier: Notifier,
    payroll_service: PayrollService,
    section: str,
    dialog: Optional[str] = None,
    payroll_form: Optional[PayrollForm] = None,
    payslip_form: Optional[PayslipForm] = None,
    status_code: int = status.HTTP_200_OK
):
    employees = payroll_service.list_employees()
    return render_page(
        request,
        "admin.html",
        session,
        notifier,
        status_code=status_code,
        section=section if section in SECTIONS else "overview",
        employees=employees,
        open_dialog=dialog if dialog in DIALOGS else None,
        payroll_form=payroll_form or PayrollForm(),
        payslip_form=payslip_form or PayslipForm(),
    )

# ============ Dashboard ============

@router.get("/admin", response_class=HTMLResponse)
def admin_home(
    request: Request,
    session: SessionController = Depends(guarded_session),
    notifier: Notifier = Depends(get_notifier),
    payroll_service: PayrollService = Depends(get_payroll_service)
):
    return _render_dashboard(request, session, notifier, payroll_service, "overview")

@router.get("/admin/{section:path}", response_class=HTMLResponse)
def admin_section(
    request: Request,
    section: str,
    dialog: Optional[str] = None,
    session: SessionController = Depends(guarded_session),
    notifier: Notifier = Depends(get_notifier),
    payroll_service: PayrollService = Depends(get_payroll_service)
):
    """
    Admin dashboard section. Unknown sections fall back to the overview.
    `?dialog=payroll|payslip` opens the matching form on the payroll section.
    """
    return _render_dashboard(
        request, session, notifier, payroll_service,
        section.strip("/"), dialog=dialog
    )

# ============ Payroll Management ============

@router.post("/admin/payroll")
def assign_payroll(
    request: Request,
    employee_id: str = Form(""),
    basic_salary: str = Form(""),
    allowances: str = Form(""),
    deductions: str = Form(""),
    session: SessionController = Depends(guarded_session),
    notifier: Notifier = Depends(get_notifier),
    payroll_service: PayrollService = Depends(get_payroll_service)
):
    """
    Assign salary components to an employee.
    On success the form is reset and closed; on failure it stays open
    with the entered values.
    """
    form = PayrollForm(
        employee_id=employee_id,
        basic_salary=basic_salary,
        allowances=allowances,
        deductions=deductions
    )
    if payroll_service.assign_payroll(form):
        return RedirectResponse("/admin/payroll", status_code=status.HTTP_303_SEE_OTHER)

    return _render_dashboard(
        request, session, notifier, payroll_service, "payroll",
        dialog="payroll", payroll_form=form,
        status_code=status.HTTP_400_BAD_REQUEST
    )

@router.post("/admin/payslips")
def generate_payslip(
    request: Request,
    employee_id: str = Form(""),
    month: str = Form(""),
    session: SessionController = Depends(guarded_session),
    notifier: Notifier = Depends(get_notifier),
    payroll_service: PayrollService = Depends(get_payroll_service)
):
    """Generate a monthly payslip for an employee."""
    form = PayslipForm(employee_id=employee_id, month=month)
    if payroll_service.generate_payslip(form):
        return RedirectResponse("/admin/payroll", status_code=status.HTTP_303_SEE_OTHER)

    return _render_dashboard(
        request, session, notifier, payroll_service, "payroll",
        dialog="payslip", payslip_form=form,
        status_code=status.HTTP_400_BAD_REQUEST
    )
