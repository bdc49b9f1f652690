"""HTTP API поверх тестовой БД."""

import logging
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest

from shared.services.errors import StoreError

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]


async def _create_payroll(client, employee, project, hours=120):
    response = await client.post("/api/v1/payroll/", json={
        "employee_id": employee.id,
        "project_id": project.id,
        "month": "2024-01",
        "hours_worked": hours,
    })
    assert response.status_code == 201, response.text
    return response.json()


class TestHealth:

    async def test_root_and_health(self, client):
        assert (await client.get("/")).json()["status"] == "running"
        assert (await client.get("/health")).json()["status"] == "healthy"


class TestAdvancesAPI:

    async def test_advance_updates_net_pay(self, client, employee, project):
        payroll = await _create_payroll(client, employee, project)
        assert Decimal(payroll["gross_pay"]) == Decimal("3000")

        response = await client.post("/api/v1/advances/", json={"employee_id": employee.id, "amount": 500})

        assert response.status_code == 201, response.text
        body = response.json()
        assert body["reconciliation_pending"] is False
        assert body["warning"] is None
        assert body["reconciliations"][0]["updated_payroll_ids"] == [payroll["id"]]

        refreshed = (await client.get(f"/api/v1/payroll/{payroll['id']}")).json()
        assert Decimal(refreshed["net_pay"]) == Decimal("2500")

        deleted = await client.delete(f"/api/v1/advances/{body['advance']['id']}")
        assert deleted.status_code == 200
        refreshed = (await client.get(f"/api/v1/payroll/{payroll['id']}")).json()
        assert Decimal(refreshed["net_pay"]) == Decimal("3000")

    async def test_partial_failure_is_reported(self, client, stores, employee, project):
        await _create_payroll(client, employee, project)

        with patch.object(stores.payrolls, "update", AsyncMock(side_effect=StoreError("timeout"))):
            response = await client.post("/api/v1/advances/", json={"employee_id": employee.id, "amount": 500})

        assert response.status_code == 201
        body = response.json()
        assert body["advance"]["employee_id"] == employee.id
        assert body["reconciliation_pending"] is True
        assert body["warning"]

        pending = (await client.get("/api/v1/reconciliations/pending")).json()
        assert [marker["employee_id"] for marker in pending] == [employee.id]

        retried = await client.post("/api/v1/reconciliations/retry")
        assert retried.status_code == 200
        assert retried.json()["total"] == 1
        assert retried.json()["still_pending"] == 0
        assert (await client.get("/api/v1/reconciliations/pending")).json() == []

    async def test_missing_amount_is_400(self, client, employee):
        response = await client.post("/api/v1/advances/", json={"employee_id": employee.id})

        assert response.status_code == 400
        assert response.json()["error"] == "Validation Error"

    async def test_unknown_employee_is_400(self, client, caplog):
        with caplog.at_level(logging.WARNING, logger="dalal"):
            response = await client.post("/api/v1/advances/", json={"employee_id": "ghost", "amount": 5})

        assert response.status_code == 400
        assert response.json()["field"] == "employee_id"
        record = next(r for r in caplog.records if r.getMessage() == "Validation failed")
        assert record.field == "employee_id"
        assert record.error

    async def test_duplicate_submission_is_409(self, client, action_guard, employee, stores):
        async with action_guard.hold(f"advances:create:{employee.id}"):
            response = await client.post("/api/v1/advances/", json={"employee_id": employee.id, "amount": 500})

        assert response.status_code == 409
        assert await stores.advances.list() == []

    async def test_unknown_advance_is_404(self, client):
        response = await client.delete("/api/v1/advances/missing")
        assert response.status_code == 404


class TestEntitiesAPI:

    async def test_employee_crud(self, client, project):
        created = await client.post("/api/v1/employees/", json={
            "name": "Bilal Aziz", "employee_code": "E002", "role": "Electrician", "project_id": project.id,
        })
        assert created.status_code == 201, created.text
        employee_id = created.json()["id"]

        listed = (await client.get("/api/v1/employees/", params={"search": "bilal"})).json()
        assert [e["employee_code"] for e in listed] == ["E002"]

        patched = await client.patch(f"/api/v1/employees/{employee_id}/pay-status", json={"pay_status": "Paid"})
        assert patched.json()["pay_status"] == "Paid"

        assert (await client.delete(f"/api/v1/employees/{employee_id}")).status_code == 204
        assert (await client.get(f"/api/v1/employees/{employee_id}")).status_code == 404

    async def test_project_delete_refused(self, client, employee, project):
        response = await client.delete(f"/api/v1/projects/{project.id}")

        assert response.status_code == 400
        assert (await client.get(f"/api/v1/projects/{project.id}")).status_code == 200

    async def test_role_rate(self, client, project):
        response = await client.put(f"/api/v1/projects/{project.id}/role-rates/Plumber", json={"rate": 28})

        assert response.status_code == 200
        assert response.json()["role_rates"]["Plumber"] == 28

    async def test_payroll_table_and_bulk_status(self, client, employee, project):
        await _create_payroll(client, employee, project)

        rows = (await client.get("/api/v1/payroll/", params={"month": "2024-01", "search": "E001"})).json()
        assert len(rows) == 1
        assert rows[0]["project_name"] == "Tower A"

        bulk = await client.post("/api/v1/payroll/bulk-status", json={"project_id": project.id, "status": "Paid"})
        assert bulk.json() == {"succeeded": 1, "failed": 0, "errors": []}
        paid = (await client.get("/api/v1/payroll/", params={"status": "Paid"})).json()
        assert len(paid) == 1

    async def test_payroll_hours_edit(self, client, employee, project):
        payroll = await _create_payroll(client, employee, project)

        response = await client.patch(f"/api/v1/payroll/{payroll['id']}", json={"hours_worked": 160})

        assert Decimal(response.json()["gross_pay"]) == Decimal("4000")
        assert Decimal(response.json()["net_pay"]) == Decimal("4000")

    async def test_expense(self, client, project):
        response = await client.post("/api/v1/expenses/", json={
            "project_id": project.id, "category": "Cement", "amount": 1200, "date": "2024-01-05",
        })

        assert response.status_code == 201, response.text
        listed = (await client.get("/api/v1/expenses/", params={"project_id": project.id, "month": "2024-01"})).json()
        assert len(listed) == 1


class TestImportsAPI:

    async def test_csv_import(self, client, employee, project):
        data = b"Employee ID,Project,Month,Hours Worked\nE001,Tower A,2024-01,100\nE001,Nowhere,2024-01,100\n"

        response = await client.post(
            "/api/v1/imports/payroll",
            files={"file": ("payroll.csv", data, "text/csv")},
        )

        assert response.status_code == 200, response.text
        body = response.json()
        assert body["succeeded"] == 1
        assert body["skipped"] == 1
        assert body["rejected"] == 1

    async def test_scanned_import(self, client, fake_ocr, employee):
        fake_ocr.text = "E001 300 food\n"

        response = await client.post(
            "/api/v1/imports/advances/scanned",
            files={"file": ("scan.png", b"fake-image", "image/png")},
        )

        assert response.status_code == 200, response.text
        assert response.json()["succeeded"] == 1
        assert response.json()["ocr_confidence"] == 80.0
        assert fake_ocr.calls == ["image/png"]

    async def test_unsupported_file_is_400(self, client):
        response = await client.post("/api/v1/imports/payroll", files={"file": ("notes.txt", b"x", "text/plain")})
        assert response.status_code == 400

    async def test_unreadable_file_is_422(self, client):
        response = await client.post(
            "/api/v1/imports/payroll",
            files={"file": ("broken.xlsx", b"not a spreadsheet", "application/octet-stream")},
        )
        assert response.status_code == 422


class TestReportsAPI:

    async def test_exports(self, client, employee, project):
        await _create_payroll(client, employee, project)

        xlsx = await client.get("/api/v1/exports/payroll.xlsx", params={"month": "2024-01"})
        pdf = await client.get("/api/v1/exports/employees.pdf")

        assert xlsx.status_code == 200
        assert xlsx.content.startswith(b"PK")
        assert pdf.content.startswith(b"%PDF")
        assert "attachment" in pdf.headers["content-disposition"]

    async def test_unknown_export(self, client):
        assert (await client.get("/api/v1/exports/payroll.docx")).status_code == 400
        assert (await client.get("/api/v1/exports/statements.xlsx")).status_code == 400

    async def test_statement_flow(self, client, employee, project):
        await _create_payroll(client, employee, project)

        created = await client.post("/api/v1/statements", json={"project_id": project.id, "month": "2024-01"})
        assert created.status_code == 201, created.text
        statement = created.json()
        assert Decimal(statement["remaining_budget"]) == Decimal("97000")

        attached = await client.post(
            f"/api/v1/statements/{statement['id']}/attachments",
            json={"name": "receipt.pdf", "url": "https://files/receipt.pdf", "type": "pdf", "size": 2048},
        )
        assert len(attached.json()["attachments"]) == 1

        pdf = await client.get(f"/api/v1/statements/{statement['id']}.pdf")
        assert pdf.content.startswith(b"%PDF")

    async def test_dashboard(self, client, employee, project):
        response = await client.get("/api/v1/dashboard")

        assert response.status_code == 200
        body = response.json()
        assert body["employee_count"] == 1
        assert len(body["series"]) == 6
