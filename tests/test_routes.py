import json

from conftest import ADMIN, EMPLOYEE, make_token, sign_in
from hrms_portal.core.session import SESSION_EXPIRED_MESSAGE

EMPLOYEES = [
    {"id": "e1", "name": "Eve Employee", "department": "Finance"},
    {"id": "e2", "name": "Bob Builder", "department": "Operations"},
]

def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["watcher_running"] is True

def test_browser_cookie_is_issued(client):
    assert client.cookies.get("hrms_browser")

# ============ Root dispatcher & guard ============

def test_root_redirects_to_login_when_signed_out(client):
    response = client.get("/")
    assert response.status_code == 303
    assert response.headers["location"] == "/login"

def test_root_redirects_admin_home(client, browser_storage):
    sign_in(browser_storage, ADMIN)
    response = client.get("/")
    assert response.headers["location"] == "/admin"

def test_dashboards_require_login(client):
    for path in ("/admin", "/admin/payroll", "/employee", "/employee/profile"):
        response = client.get(path)
        assert response.status_code == 303, path
        assert response.headers["location"] == "/login"

def test_admin_visiting_employee_area_goes_to_admin(client, browser_storage):
    sign_in(browser_storage, ADMIN)
    response = client.get("/employee/x")
    assert response.status_code == 303
    assert response.headers["location"] == "/admin"

def test_employee_visiting_admin_area_goes_to_employee(client, browser_storage):
    sign_in(browser_storage, EMPLOYEE)
    response = client.get("/admin/payroll")
    assert response.status_code == 303
    assert response.headers["location"] == "/employee"

def test_signed_in_user_skips_login_page(client, browser_storage):
    sign_in(browser_storage, EMPLOYEE)
    response = client.get("/login")
    assert response.headers["location"] == "/employee"

def test_employee_dashboard_shows_profile(client, browser_storage):
    sign_in(browser_storage, EMPLOYEE)
    response = client.get("/employee")
    assert response.status_code == 200
    assert "Eve Employee" in response.text
    assert "Finance" in response.text

def test_expired_token_on_load_clears_storage(client, browser_storage):
    sign_in(browser_storage, ADMIN, make_token(expires_in=-60))

    response = client.get("/admin")
    assert response.headers["location"] == "/login"
    assert browser_storage.get_item("token") is None
    assert browser_storage.get_item("user") is None

    assert SESSION_EXPIRED_MESSAGE in client.get("/login").text

# ============ Login / logout ============

def test_login_page(client):
    response = client.get("/login")
    assert response.status_code == 200
    assert "Sign in" in response.text

def test_login_success(client, backend, browser_storage):
    token = make_token()
    backend.reply("POST", "/api/auth/login", body={"token": token, "user": ADMIN})

    response = client.post("/login", data={"email": "alice@example.com", "password": "pw"})
    assert response.status_code == 303
    assert response.headers["location"] == "/admin"
    assert browser_storage.get_item("token") == token
    assert json.loads(browser_storage.get_item("user"))["role"] == "admin"
    assert backend.calls[0]["json"] == {"email": "alice@example.com", "password": "pw"}

def test_login_accepts_access_token_field(client, backend, browser_storage):
    token = make_token()
    backend.reply("POST", "/api/auth/login", body={"access_token": token, "user": EMPLOYEE})

    response = client.post("/login", data={"email": "eve@example.com", "password": "pw"})
    assert response.headers["location"] == "/employee"

def test_login_rejected_shows_detail_without_logout_loop(client, backend, browser_storage):
    backend.reply("POST", "/api/auth/login", status=401, body={"detail": "Invalid credentials"})

    response = client.post("/login", data={"email": "alice@example.com", "password": "bad"})
    assert response.status_code == 401
    assert "Invalid credentials" in response.text
    assert SESSION_EXPIRED_MESSAGE not in response.text
    assert browser_storage.get_item("token") is None

def test_login_requires_fields(client, backend):
    response = client.post("/login", data={"email": "", "password": ""})
    assert response.status_code == 400
    assert backend.calls == []

def test_login_with_role_without_dashboard(client, backend, browser_storage):
    backend.reply("POST", "/api/auth/login", body={
        "token": make_token(),
        "user": {"id": "x1", "name": "Guest", "role": "auditor"},
    })

    response = client.post("/login", data={"email": "g@example.com", "password": "pw"})
    assert response.status_code == 403
    assert browser_storage.get_item("token") is None

def test_logout(client, browser_storage):
    sign_in(browser_storage, ADMIN)

    response = client.post("/logout")
    assert response.headers["location"] == "/login"
    assert browser_storage.get_item("token") is None
    assert browser_storage.get_item("user") is None

# ============ Session status ============

def test_session_status_reports_authenticated(client, browser_storage):
    sign_in(browser_storage, ADMIN)

    data = client.get("/session/status", params={"path": "/admin"}).json()
    assert data == {"authenticated": True, "role": "admin", "expired": False, "redirect": None}

def test_session_status_expires_token(client, browser_storage):
    sign_in(browser_storage, ADMIN, make_token(expires_in=-1))

    data = client.get("/session/status", params={"path": "/admin/payroll"}).json()
    assert data["expired"] is True
    assert data["authenticated"] is False
    assert data["redirect"] == "/login"
    assert browser_storage.get_item("token") is None

# ============ Payroll management ============

def test_payroll_panel_lists_employees(client, backend, browser_storage):
    sign_in(browser_storage, ADMIN)
    backend.reply("GET", "/api/employees", body=EMPLOYEES)

    response = client.get("/admin/payroll")
    assert response.status_code == 200
    assert "Payroll Management" in response.text
    assert "Eve Employee - Finance" in response.text
    assert "Bob Builder - Operations" in response.text

def test_employee_list_fetch_failure(client, backend, browser_storage):
    sign_in(browser_storage, ADMIN)
    backend.reply("GET", "/api/employees", status=500, body=None)

    response = client.get("/admin/employees")
    assert response.status_code == 200
    assert "Failed to fetch employees" in response.text
    assert "No employees found." in response.text

def test_assign_payroll_sends_zero_defaults(client, backend, browser_storage):
    token = make_token()
    sign_in(browser_storage, ADMIN, token)
    backend.reply("GET", "/api/employees", body=EMPLOYEES)
    backend.reply("POST", "/api/payroll", status=201, body={"id": "p1"})

    response = client.post("/admin/payroll", data={
        "employee_id": "e1",
        "basic_salary": "5000",
        "allowances": "",
        "deductions": "",
    })
    assert response.status_code == 303
    assert response.headers["location"] == "/admin/payroll"

    call = backend.calls_to("POST", "/api/payroll")[0]
    assert call["json"] == {
        "employee_id": "e1",
        "basic_salary": 5000.0,
        "allowances": 0,
        "deductions": 0,
    }
    assert call["headers"]["Authorization"] == f"Bearer {token}"

    page = client.get("/admin/payroll")
    assert "Payroll assigned successfully!" in page.text
    assert '<dialog id="payroll-dialog" open' not in page.text

def test_assign_payroll_failure_keeps_dialog_open(client, backend, browser_storage):
    sign_in(browser_storage, ADMIN)
    backend.reply("GET", "/api/employees", body=EMPLOYEES)
    backend.reply("POST", "/api/payroll", status=400, body={"detail": "Payroll already assigned"})

    response = client.post("/admin/payroll", data={
        "employee_id": "e2",
        "basic_salary": "4200",
    })
    assert response.status_code == 400
    assert "Payroll already assigned" in response.text
    assert '<dialog id="payroll-dialog" open' in response.text
    assert 'value="4200"' in response.text

def test_generate_payslip(client, backend, browser_storage):
    sign_in(browser_storage, ADMIN)
    backend.reply("GET", "/api/employees", body=EMPLOYEES)
    backend.reply("POST", "/api/payslips/generate", body={"id": "s1"})

    response = client.post("/admin/payslips", data={"employee_id": "e1", "month": "2024-05"})
    assert response.status_code == 303
    assert backend.calls_to("POST", "/api/payslips/generate")[0]["json"] == {
        "employee_id": "e1",
        "month": "2024-05",
    }
    assert "Payslip generated successfully!" in client.get("/admin/payroll").text

def test_generate_payslip_failure_fallback(client, backend, browser_storage):
    sign_in(browser_storage, ADMIN)
    backend.reply("GET", "/api/employees", body=EMPLOYEES)
    backend.reply("POST", "/api/payslips/generate", status=500, body=None)

    response = client.post("/admin/payslips", data={"employee_id": "e1", "month": "2024-05"})
    assert response.status_code == 400
    assert "Failed to generate payslip" in response.text
    assert '<dialog id="payslip-dialog" open' in response.text

# ============ Authentication failure from the backend ============

def test_backend_401_logs_out_once(client, backend, browser_storage):
    sign_in(browser_storage, ADMIN)
    backend.reply("GET", "/api/employees", status=401, body={"detail": "Token revoked"})

    response = client.get("/admin/payroll")
    assert response.status_code == 303
    assert response.headers["location"] == "/login"
    assert browser_storage.get_item("token") is None
    assert browser_storage.get_item("user") is None

    login_page = client.get("/login")
    assert login_page.status_code == 200
    assert login_page.text.count(SESSION_EXPIRED_MESSAGE) == 1

    again = client.get("/login")
    assert again.status_code == 200
    assert SESSION_EXPIRED_MESSAGE not in again.text

def test_backend_401_on_submit_logs_out(client, backend, browser_storage):
    sign_in(browser_storage, ADMIN)
    backend.reply("POST", "/api/payroll", status=401, body={"detail": "expired"})

    response = client.post("/admin/payroll", data={"employee_id": "e1", "basic_salary": "10"})
    assert response.headers["location"] == "/login"
    assert browser_storage.get_item("token") is None
