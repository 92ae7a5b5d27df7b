from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from hrms_portal.core.notifications import Notifier
from hrms_portal.core.session import SessionController
from hrms_portal.dependencies import get_notifier, guarded_session
from hrms_portal.utils.rendering import render_page

router = APIRouter(tags=["employee"])

@router.get("/employee", response_class=HTMLResponse)
@router.get("/employee/{section:path}", response_class=HTMLResponse)
def employee_dashboard(
    request: Request,
    session: SessionController = Depends(guarded_session),
    notifier: Notifier = Depends(get_notifier)
):
    """Profile of the signed-in employee."""
    return render_page(request, "employee.html", session, notifier)
