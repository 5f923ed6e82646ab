import pytest

from backoffice.models import ChartOfAccountType


@pytest.mark.anyio("asyncio")
async def test_create_update_and_deactivate_account(client, auth_headers):
    response = await client.post(
        "/chart-of-accounts",
        json={"account_name": "Current Assets", "account_type": "asset"},
        headers=auth_headers,
    )
    assert response.status_code == 201
    parent = response.json()
    assert parent["depth"] == 0
    assert parent["is_active"] is True

    response = await client.post(
        "/chart-of-accounts",
        json={"account_name": "Petty Cash", "account_type": "asset", "parent_id": parent["id"]},
        headers=auth_headers,
    )
    assert response.status_code == 201
    child = response.json()
    assert child["depth"] == 1
    assert child["path"] == "Current Assets/Petty Cash"

    response = await client.patch(
        f"/chart-of-accounts/{child['id']}",
        json={"description": "Float kept at the front desk"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["description"] == "Float kept at the front desk"

    response = await client.delete(f"/chart-of-accounts/{child['id']}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["is_active"] is False

    response = await client.get(
        "/audit-logs",
        params={"table_name": "chart_of_accounts", "record_id": str(child["id"])},
        headers=auth_headers,
    )
    assert response.status_code == 200
    kinds = [row["action_type"] for row in response.json()]
    assert kinds == ["DELETE", "UPDATE", "CREATE"]
    assert all(row["user_name"] == "Ada Operator" for row in response.json())


@pytest.mark.anyio("asyncio")
async def test_duplicate_account_name_is_a_validation_error(client, auth_headers, make_account):
    make_account("Bank")
    response = await client.post(
        "/chart-of-accounts", json={"account_name": "bank", "account_type": "asset"}, headers=auth_headers
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.anyio("asyncio")
async def test_default_account_delete_is_forbidden(client, auth_headers, make_account):
    account = make_account("Owner's Equity", ChartOfAccountType.EQUITY, is_default=True)

    response = await client.delete(f"/chart-of-accounts/{account.id}", headers=auth_headers)
    assert response.status_code == 403
    body = response.json()
    assert body["error"]["code"] == "PERMISSION_DENIED"
    assert "system-protected" in body["error"]["message"]


@pytest.mark.anyio("asyncio")
async def test_missing_account_is_not_found(client, auth_headers):
    response = await client.patch("/chart-of-accounts/9999", json={"description": "x"}, headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.anyio("asyncio")
@pytest.mark.parametrize("field", ["account_name", "account_type", "description", "is_control_account"])
async def test_required_fields_cannot_be_cleared(client, auth_headers, make_account, field):
    account = make_account("Receivables")

    response = await client.patch(
        f"/chart-of-accounts/{account.id}", json={field: None}, headers=auth_headers
    )
    assert response.status_code == 400
    body = response.json()
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert body["error"]["details"]["fields"] == [field]

    response = await client.get(
        "/audit-logs",
        params={"table_name": "chart_of_accounts", "record_id": str(account.id)},
        headers=auth_headers,
    )
    assert response.json() == []


@pytest.mark.anyio("asyncio")
async def test_account_cannot_move_under_its_descendant(client, auth_headers):
    ids = {}
    parent_id = None
    for name in ("Assets", "Current", "Cash"):
        response = await client.post(
            "/chart-of-accounts",
            json={"account_name": name, "account_type": "asset", "parent_id": parent_id},
            headers=auth_headers,
        )
        assert response.status_code == 201
        ids[name] = parent_id = response.json()["id"]

    for target in ("Assets", "Current", "Cash"):
        response = await client.patch(
            f"/chart-of-accounts/{ids['Assets']}", json={"parent_id": ids[target]}, headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    response = await client.get(f"/chart-of-accounts/{ids['Assets']}", headers=auth_headers)
    assert response.json()["parent_id"] is None
    assert response.json()["path"] == "Assets"


@pytest.mark.anyio("asyncio")
async def test_moving_an_account_updates_descendant_paths(client, auth_headers):
    created = {}
    for name, parent in (("Assets", None), ("Current", "Assets"), ("Cash", "Current"), ("Holdings", None)):
        response = await client.post(
            "/chart-of-accounts",
            json={
                "account_name": name,
                "account_type": "asset",
                "parent_id": created[parent]["id"] if parent else None,
            },
            headers=auth_headers,
        )
        created[name] = response.json()

    response = await client.patch(
        f"/chart-of-accounts/{created['Assets']['id']}",
        json={"parent_id": created["Holdings"]["id"]},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["path"] == "Holdings/Assets"
    assert response.json()["depth"] == 1

    response = await client.get(f"/chart-of-accounts/{created['Cash']['id']}", headers=auth_headers)
    assert response.json()["path"] == "Holdings/Assets/Current/Cash"
    assert response.json()["depth"] == 3
