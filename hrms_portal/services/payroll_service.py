from pydantic import BaseModel, ConfigDict
from typing import List, Optional
import math
import re
import logging

from hrms_portal.core.notifications import Notifier
from hrms_portal.services.api_client import ApiClient, ApiError, SessionExpiredError

logger = logging.getLogger(__name__)

MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")

class FormValidationError(ValueError):
    """Submitted form values cannot be turned into a request payload"""

def parse_amount(text: Optional[str], default: Optional[float] = None) -> float:
    """
    Parse a money amount typed into a text field.

    Args:
        text: Raw field value
        default: Returned for empty or unparseable input. If None, such
            input raises FormValidationError instead

    Returns:
        Parsed amount
    """
    value = (text or "").strip()
    try:
        amount = float(value)
    except ValueError:
        amount = None

    if amount is None or math.isnan(amount) or math.isinf(amount):
        if default is None:
            raise FormValidationError(f"'{value}' is not a valid amount")
        return default
    return amount

# ============ Models ============

class Employee(BaseModel):
    """Employee reference data from GET /employees"""
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id: str
    name: str
    department: Optional[str] = None

    @property
    def label(self) -> str:
        if self.department:
            return f"{self.name} - {self.department}"
        return self.name

class PayrollForm(BaseModel):
    """Assign-payroll form as typed by the user"""
    employee_id: str = ""
    basic_salary: str = ""
    allowances: str = ""
    deductions: str = ""

    def to_payload(self) -> dict:
        if not self.employee_id:
            raise FormValidationError("Please select an employee")
        try:
            basic_salary = parse_amount(self.basic_salary)
        except FormValidationError:
            raise FormValidationError("Basic salary must be a number")
        return {
            "employee_id": self.employee_id,
            "basic_salary": basic_salary,
            "allowances": parse_amount(self.allowances, default=0),
            "deductions": parse_amount(self.deductions, default=0),
        }

class PayslipForm(BaseModel):
    """Generate-payslip form as typed by the user"""
    employee_id: str = ""
    month: str = ""

    def to_payload(self) -> dict:
        if not self.employee_id:
            raise FormValidationError("Please select an employee")
        month = self.month.strip()
        if not MONTH_PATTERN.match(month):
            raise FormValidationError("Month must be in YYYY-MM format")
        return {"employee_id": self.employee_id, "month": month}

# ============ Service ============

class PayrollService:
    """
    Payroll management flows against the backend.
    Each flow reports its outcome as a toast and returns whether it succeeded.
    """

    def __init__(self, client: ApiClient, notifier: Notifier):
        self.client = client
        self.notifier = notifier

    def list_employees(self) -> List[Employee]:
        try:
            data = self.client.get("/employees") or []
            return [Employee(**item) for item in data]
        except SessionExpiredError:
            raise
        except (ApiError, ValueError, TypeError) as e:
            logger.error(f"Failed to fetch employees: {str(e)}")
            self.notifier.error("Failed to fetch employees")
            return []

    def assign_payroll(self, form: PayrollForm) -> bool:
        return self._submit(
            "/payroll",
            form,
            success="Payroll assigned successfully!",
            failure="Failed to assign payroll",
        )

    def generate_payslip(self, form: PayslipForm) -> bool:
        return self._submit(
            "/payslips/generate",
            form,
            success="Payslip generated successfully!",
            failure="Failed to generate payslip",
        )

    def _submit(self, path: str, form, success: str, failure: str) -> bool:
        try:
            payload = form.to_payload()
        except FormValidationError as e:
            self.notifier.error(str(e))
            return False

        try:
            self.client.post(path, json=payload)
        except SessionExpiredError:
            raise
        except ApiError as e:
            logger.error(f"{failure}: status={e.status_code}, detail={e.detail}")
            self.notifier.error(e.detail or failure)
            return False

        logger.info(f"POST {path} succeeded for employee {payload['employee_id']}")
        self.notifier.success(success)
        return True
