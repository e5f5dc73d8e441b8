import asyncio
import pytest
from httpx import AsyncClient
from fastapi import status

pytestmark = pytest.mark.asyncio

class TestCreateDeclaration:
    async def test_create_declaration(
        self,
        commercial_a: dict,
        client_of_a: dict,
        declaration: dict
    ):
        """A new ticket carries its nested client, category and author."""
        assert declaration["status"] == "new"
        assert declaration["commercial_id"] == commercial_a["user"]["id"]
        assert declaration["technician_id"] is None
        assert declaration["taken_at"] is None
        assert declaration["resolved_at"] is None
        assert declaration["client"]["id"] == client_of_a["id"]
        assert declaration["category"] == {"id": "2", "name": "Computing"}
        assert declaration["commercial"]["name"] == "Alice"
        assert declaration["commercial"]["role"] == "commercial"
        assert declaration["commercial"]["email"] == "alice@shop.com"
        assert declaration["technician"] is None

        accessories = declaration["accessories"]
        assert [a["name"] for a in accessories] == ["Charger", "Bag"]
        assert [a["checked"] for a in accessories] == [True, False]
        assert all(a["id"] for a in accessories)

    async def test_status_in_payload_is_ignored(
        self,
        client: AsyncClient,
        commercial_a: dict,
        declaration_data: dict
    ):
        response = await client.post(
            "/api/declarations",
            json={**declaration_data, "status": "resolved"},
            headers=commercial_a["headers"]
        )
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["status"] == "new"

    async def test_unknown_category(
        self,
        client: AsyncClient,
        commercial_a: dict,
        declaration_data: dict
    ):
        response = await client.post(
            "/api/declarations",
            json={**declaration_data, "category_id": "99"},
            headers=commercial_a["headers"]
        )
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        data = response.json()
        assert data["code"] == "validation_error"
        assert data["errors"][0]["loc"] == ["body", "category_id"]

    async def test_unknown_client(
        self,
        client: AsyncClient,
        commercial_a: dict,
        declaration_data: dict
    ):
        response = await client.post(
            "/api/declarations",
            json={**declaration_data, "client_id": "missing"},
            headers=commercial_a["headers"]
        )
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_missing_product_name(
        self,
        client: AsyncClient,
        commercial_a: dict,
        declaration_data: dict
    ):
        response = await client.post(
            "/api/declarations",
            json={**declaration_data, "product_name": ""},
            headers=commercial_a["headers"]
        )
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_for_client_of_other_commercial(
        self,
        client: AsyncClient,
        commercial_b: dict,
        declaration_data: dict
    ):
        response = await client.post(
            "/api/declarations",
            json=declaration_data,
            headers=commercial_b["headers"]
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_technician_cannot_create(
        self,
        client: AsyncClient,
        technician_pierre: dict,
        declaration_data: dict
    ):
        response = await client.post(
            "/api/declarations",
            json=declaration_data,
            headers=technician_pierre["headers"]
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_requires_authentication(self, client: AsyncClient, declaration_data: dict):
        response = await client.post("/api/declarations", json=declaration_data)
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

class TestVisibility:
    async def test_commercial_sees_only_own(
        self,
        client: AsyncClient,
        commercial_a: dict,
        commercial_b: dict,
        declaration: dict
    ):
        response = await client.get("/api/declarations", headers=commercial_a["headers"])
        assert [d["id"] for d in response.json()] == [declaration["id"]]

        response = await client.get("/api/declarations", headers=commercial_b["headers"])
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == []

        response = await client.get(f"/api/declarations/{declaration['id']}", headers=commercial_b["headers"])
        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_technician_and_admin_see_all(
        self,
        client: AsyncClient,
        admin_headers: dict,
        technician_pierre: dict,
        declaration: dict
    ):
        for headers in (technician_pierre["headers"], admin_headers):
            response = await client.get("/api/declarations", headers=headers)
            assert [d["id"] for d in response.json()] == [declaration["id"]]

            response = await client.get(f"/api/declarations/{declaration['id']}", headers=headers)
            assert response.status_code == status.HTTP_200_OK

    async def test_newest_first_and_status_filter(
        self,
        client: AsyncClient,
        commercial_a: dict,
        technician_pierre: dict,
        declaration_data: dict,
        declaration: dict
    ):
        second = await client.post(
            "/api/declarations",
            json={**declaration_data, "product_name": "Phone"},
            headers=commercial_a["headers"]
        )
        second_id = second.json()["id"]
        await client.post(f"/api/declarations/{declaration['id']}/take", headers=technician_pierre["headers"])

        response = await client.get("/api/declarations", headers=commercial_a["headers"])
        assert [d["id"] for d in response.json()] == [second_id, declaration["id"]]

        response = await client.get(
            "/api/declarations",
            params={"status": "in_progress"},
            headers=technician_pierre["headers"]
        )
        assert [d["id"] for d in response.json()] == [declaration["id"]]

        response = await client.get(
            "/api/declarations",
            params={"status": "new"},
            headers=technician_pierre["headers"]
        )
        assert [d["id"] for d in response.json()] == [second_id]

    async def test_unknown_status_filter(self, client: AsyncClient, technician_pierre: dict):
        response = await client.get(
            "/api/declarations",
            params={"status": "closed"},
            headers=technician_pierre["headers"]
        )
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_read_missing_declaration(self, client: AsyncClient, technician_pierre: dict):
        response = await client.get("/api/declarations/nope", headers=technician_pierre["headers"])
        assert response.status_code == status.HTTP_404_NOT_FOUND

class TestTake:
    async def test_take(
        self,
        client: AsyncClient,
        commercial_a: dict,
        technician_pierre: dict,
        declaration: dict
    ):
        response = await client.post(
            f"/api/declarations/{declaration['id']}/take",
            headers=technician_pierre["headers"]
        )
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "in_progress"
        assert data["technician_id"] == technician_pierre["user"]["id"]
        assert data["technician"]["name"] == "Pierre"
        assert data["technician"]["role"] == "technician"
        assert data["taken_at"] is not None

        # the author sees the assignment
        response = await client.get(f"/api/declarations/{declaration['id']}", headers=commercial_a["headers"])
        assert response.json()["technician_id"] == technician_pierre["user"]["id"]

    async def test_take_twice(
        self,
        client: AsyncClient,
        technician_pierre: dict,
        technician_luc: dict,
        declaration: dict
    ):
        first = await client.post(f"/api/declarations/{declaration['id']}/take", headers=technician_pierre["headers"])
        assert first.status_code == status.HTTP_200_OK

        response = await client.post(f"/api/declarations/{declaration['id']}/take", headers=technician_luc["headers"])
        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["code"] == "conflict"

        response = await client.get(f"/api/declarations/{declaration['id']}", headers=technician_luc["headers"])
        assert response.json()["technician_id"] == technician_pierre["user"]["id"]

    async def test_concurrent_takes_have_one_winner(
        self,
        client: AsyncClient,
        technician_pierre: dict,
        technician_luc: dict,
        declaration: dict
    ):
        url = f"/api/declarations/{declaration['id']}/take"
        responses = await asyncio.gather(
            client.post(url, headers=technician_pierre["headers"]),
            client.post(url, headers=technician_luc["headers"]),
        )

        codes = sorted(r.status_code for r in responses)
        assert codes == [status.HTTP_200_OK, status.HTTP_409_CONFLICT]

        winner = next(r for r in responses if r.status_code == status.HTTP_200_OK).json()
        response = await client.get(url.rsplit("/", 1)[0], headers=technician_luc["headers"])
        assert response.json()["technician_id"] == winner["technician_id"]

    async def test_take_missing(self, client: AsyncClient, technician_pierre: dict):
        response = await client.post("/api/declarations/nope/take", headers=technician_pierre["headers"])
        assert response.status_code == status.HTTP_404_NOT_FOUND

    async def test_only_technicians_take(
        self,
        client: AsyncClient,
        admin_headers: dict,
        commercial_a: dict,
        declaration: dict
    ):
        for headers in (commercial_a["headers"], admin_headers):
            response = await client.post(f"/api/declarations/{declaration['id']}/take", headers=headers)
            assert response.status_code == status.HTTP_403_FORBIDDEN

        response = await client.get(f"/api/declarations/{declaration['id']}", headers=admin_headers)
        assert response.json()["status"] == "new"

class TestResolve:
    @pytest.fixture
    async def taken(self, client: AsyncClient, technician_pierre: dict, declaration: dict) -> dict:
        response = await client.post(
            f"/api/declarations/{declaration['id']}/take",
            headers=technician_pierre["headers"]
        )
        assert response.status_code == 200, response.text
        return response.json()

    async def test_resolve(self, client: AsyncClient, technician_pierre: dict, taken: dict):
        response = await client.post(
            f"/api/declarations/{taken['id']}/resolve",
            json={"remarks": "Replaced the power board"},
            headers=technician_pierre["headers"]
        )
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "resolved"
        assert data["technician_remarks"] == "Replaced the power board"
        assert data["resolved_at"] is not None
        assert data["taken_at"] == taken["taken_at"]

    async def test_resolve_without_body_keeps_remarks(
        self,
        client: AsyncClient,
        technician_pierre: dict,
        taken: dict
    ):
        await client.patch(
            f"/api/declarations/{taken['id']}/remarks",
            json={"technician_remarks": "Waiting for parts"},
            headers=technician_pierre["headers"]
        )

        response = await client.post(f"/api/declarations/{taken['id']}/resolve", headers=technician_pierre["headers"])
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["technician_remarks"] == "Waiting for parts"

    async def test_other_technician_cannot_resolve(
        self,
        client: AsyncClient,
        technician_luc: dict,
        taken: dict
    ):
        response = await client.post(f"/api/declarations/{taken['id']}/resolve", headers=technician_luc["headers"])
        assert response.status_code == status.HTTP_403_FORBIDDEN

        response = await client.get(f"/api/declarations/{taken['id']}", headers=technician_luc["headers"])
        assert response.json()["status"] == "in_progress"

    async def test_resolve_twice(self, client: AsyncClient, technician_pierre: dict, taken: dict):
        url = f"/api/declarations/{taken['id']}/resolve"
        first = await client.post(url, headers=technician_pierre["headers"])
        assert first.status_code == status.HTTP_200_OK

        response = await client.post(url, headers=technician_pierre["headers"])
        assert response.status_code == status.HTTP_409_CONFLICT

        response = await client.get(f"/api/declarations/{taken['id']}", headers=technician_pierre["headers"])
        assert response.json()["resolved_at"] == first.json()["resolved_at"]

    async def test_cannot_resolve_new_declaration(
        self,
        client: AsyncClient,
        technician_pierre: dict,
        declaration: dict
    ):
        response = await client.post(
            f"/api/declarations/{declaration['id']}/resolve",
            headers=technician_pierre["headers"]
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_resolved_cannot_be_taken_again(
        self,
        client: AsyncClient,
        technician_pierre: dict,
        technician_luc: dict,
        taken: dict
    ):
        await client.post(f"/api/declarations/{taken['id']}/resolve", headers=technician_pierre["headers"])

        response = await client.post(f"/api/declarations/{taken['id']}/take", headers=technician_luc["headers"])
        assert response.status_code == status.HTTP_409_CONFLICT

class TestRemarks:
    async def test_update_remarks(
        self,
        client: AsyncClient,
        technician_pierre: dict,
        technician_luc: dict,
        declaration: dict
    ):
        url = f"/api/declarations/{declaration['id']}/remarks"

        # nobody is assigned yet
        response = await client.patch(url, json={"technician_remarks": "x"}, headers=technician_pierre["headers"])
        assert response.status_code == status.HTTP_403_FORBIDDEN

        await client.post(f"/api/declarations/{declaration['id']}/take", headers=technician_pierre["headers"])

        response = await client.patch(url, json={"technician_remarks": "Diagnosed"}, headers=technician_pierre["headers"])
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["technician_remarks"] == "Diagnosed"
        assert response.json()["status"] == "in_progress"

        response = await client.patch(url, json={"technician_remarks": "Mine"}, headers=technician_luc["headers"])
        assert response.status_code == status.HTTP_403_FORBIDDEN

        await client.post(f"/api/declarations/{declaration['id']}/resolve", headers=technician_pierre["headers"])
        response = await client.patch(url, json={"technician_remarks": "Late"}, headers=technician_pierre["headers"])
        assert response.status_code == status.HTTP_409_CONFLICT

class TestEditAndDelete:
    async def test_update_while_new(
        self,
        client: AsyncClient,
        commercial_a: dict,
        commercial_b: dict,
        technician_pierre: dict,
        declaration: dict
    ):
        url = f"/api/declarations/{declaration['id']}"

        response = await client.put(url, json={"product_name": "Laptop X2", "category_id": "3"}, headers=commercial_a["headers"])
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["product_name"] == "Laptop X2"
        assert data["category"]["name"] == "Telephony"
        assert data["serial_number"] == "SN-0042"

        response = await client.put(url, json={"product_name": "Stolen"}, headers=commercial_b["headers"])
        assert response.status_code == status.HTTP_403_FORBIDDEN

        await client.post(f"{url}/take", headers=technician_pierre["headers"])

        response = await client.put(url, json={"product_name": "Too late"}, headers=commercial_a["headers"])
        assert response.status_code == status.HTTP_409_CONFLICT

        response = await client.get(url, headers=commercial_a["headers"])
        assert response.json()["product_name"] == "Laptop X2"

    async def test_empty_update_after_take(
        self,
        client: AsyncClient,
        commercial_a: dict,
        technician_pierre: dict,
        declaration: dict
    ):
        url = f"/api/declarations/{declaration['id']}"
        response = await client.put(url, json={}, headers=commercial_a["headers"])
        assert response.status_code == status.HTTP_200_OK

        await client.post(f"{url}/take", headers=technician_pierre["headers"])

        response = await client.put(url, json={}, headers=commercial_a["headers"])
        assert response.status_code == status.HTTP_409_CONFLICT

    async def test_update_replaces_accessories(self, client: AsyncClient, commercial_a: dict, declaration: dict):
        response = await client.put(
            f"/api/declarations/{declaration['id']}",
            json={"accessories": [{"name": "Mouse", "checked": True}]},
            headers=commercial_a["headers"]
        )
        assert response.status_code == status.HTTP_200_OK
        assert [a["name"] for a in response.json()["accessories"]] == ["Mouse"]

    async def test_delete_any_status(
        self,
        client: AsyncClient,
        commercial_a: dict,
        commercial_b: dict,
        technician_pierre: dict,
        declaration: dict
    ):
        url = f"/api/declarations/{declaration['id']}"
        await client.post(f"{url}/take", headers=technician_pierre["headers"])
        await client.post(f"{url}/resolve", headers=technician_pierre["headers"])

        response = await client.delete(url, headers=commercial_b["headers"])
        assert response.status_code == status.HTTP_403_FORBIDDEN

        response = await client.delete(url, headers=technician_pierre["headers"])
        assert response.status_code == status.HTTP_403_FORBIDDEN

        response = await client.delete(url, headers=commercial_a["headers"])
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["success"] is True

        response = await client.get(url, headers=commercial_a["headers"])
        assert response.status_code == status.HTTP_404_NOT_FOUND

    async def test_full_lifecycle(
        self,
        client: AsyncClient,
        commercial_a: dict,
        technician_pierre: dict,
        declaration: dict
    ):
        """new -> in_progress -> resolved, as seen by the author."""
        url = f"/api/declarations/{declaration['id']}"
        await client.post(f"{url}/take", headers=technician_pierre["headers"])
        await client.post(f"{url}/resolve", json={"remarks": "Fixed"}, headers=technician_pierre["headers"])

        response = await client.get("/api/declarations", headers=commercial_a["headers"])
        data = response.json()[0]
        assert data["status"] == "resolved"
        assert data["technician"]["name"] == "Pierre"
        assert data["technician_remarks"] == "Fixed"
        assert data["taken_at"] is not None
        assert data["resolved_at"] is not None
