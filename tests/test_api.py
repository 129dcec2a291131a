from conftest import make_token

API = "/api/v1"


def _new_vehicle(client, headers, plate="KLM2B34", association_type="FLEET"):
    response = client.post(f"{API}/vehicles/create-new-vehicle", headers=headers, json={
        "plate": plate, "brand": "Volvo", "model": "FH", "year": 2022, "associationType": association_type,
    })
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


class TestAuth:

    def test_missing_token(self, client):
        response = client.get(f"{API}/vehicle-associations")
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    def test_refresh_token_is_not_accepted(self, client, make_account):
        token = make_token(make_account().id, token_type="refresh")
        response = client.get(f"{API}/vehicle-associations", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_operator_cannot_write(self, client, make_account, make_vehicle, auth_headers):
        account, vehicle = make_account(), make_vehicle()
        response = client.post(f"{API}/vehicle-associations", headers=auth_headers(account.id, "OPERATOR"),
                               json={"vehicleId": vehicle.id, "associationType": "AGGREGATED"})
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"

    def test_operator_can_read(self, client, make_account, auth_headers):
        response = client.get(f"{API}/vehicle-associations", headers=auth_headers(make_account().id, "OPERATOR"))
        assert response.status_code == 200
        assert response.json()["total"] == 0


class TestVehicleAssociationRoutes:

    def test_exclusivity_conflict_is_409(self, client, make_account, auth_headers):
        owner, other = make_account("Owner Ltda"), make_account()
        vehicle = _new_vehicle(client, auth_headers(owner.id))

        response = client.post(f"{API}/vehicle-associations", headers=auth_headers(other.id, "MANAGER"),
                               json={"vehicleId": vehicle["id"], "associationType": "FLEET"})

        assert response.status_code == 409
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "EXCLUSIVITY_CONFLICT"
        assert body["error"]["details"][0]["accountId"] == owner.id

    def test_shared_then_remove(self, client, make_account, auth_headers):
        owner, other = make_account(), make_account()
        vehicle = _new_vehicle(client, auth_headers(owner.id))

        created = client.post(f"{API}/vehicle-associations", headers=auth_headers(other.id),
                              json={"vehicleId": vehicle["id"], "associationType": "AGGREGATED"})
        assert created.status_code == 201
        association_id = created.json()["data"]["id"]

        removed = client.delete(f"{API}/vehicle-associations/{association_id}", headers=auth_headers(other.id))
        assert removed.status_code == 204
        missing = client.get(f"{API}/vehicle-associations/{association_id}", headers=auth_headers(other.id))
        assert missing.status_code == 404
        assert missing.json()["error"]["code"] == "NOT_FOUND"

    def test_fleet_remove_is_403(self, client, make_account, auth_headers):
        owner = make_account()
        vehicle = _new_vehicle(client, auth_headers(owner.id))

        response = client.delete(f"{API}/vehicle-associations/{vehicle['association']['id']}",
                                 headers=auth_headers(owner.id))
        assert response.status_code == 403

    def test_list_with_bad_sort_is_400(self, client, make_account, auth_headers):
        response = client.get(f"{API}/vehicle-associations", params={"sortBy": "password"},
                              headers=auth_headers(make_account().id))
        assert response.status_code == 400
        assert response.json()["error"] == {"code": "INVALID_FIELD", "details": None, "field": "sortBy"}

    def test_list_envelope(self, client, make_account, auth_headers):
        owner = make_account()
        headers = auth_headers(owner.id)
        _new_vehicle(client, headers, plate="AAA1111")
        _new_vehicle(client, headers, plate="AAA2222")

        response = client.get(f"{API}/vehicle-associations", params={"limit": 1}, headers=headers)
        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert (body["total"], body["page"], body["limit"], body["totalPages"]) == (2, 1, 1, 2)
        assert len(body["data"]) == 1

    def test_unknown_association_type_is_422(self, client, make_account, make_vehicle, auth_headers):
        account, vehicle = make_account(), make_vehicle()
        response = client.post(f"{API}/vehicle-associations", headers=auth_headers(account.id),
                               json={"vehicleId": vehicle.id, "associationType": "OWNER_PLUS"})
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


class TestDriverRoutes:

    def test_driver_association_lifecycle(self, client, make_account, auth_headers):
        account = make_account()
        headers = auth_headers(account.id)

        driver = client.post(f"{API}/drivers", headers=headers,
                             json={"cpf": "98765432100", "fullName": "Paulo Mendes"})
        assert driver.status_code == 201
        driver_id = driver.json()["data"]["id"]

        created = client.post(f"{API}/driver-associations", headers=headers,
                              json={"driverId": driver_id, "associationType": "FLEET"})
        assert created.status_code == 201
        association_id = created.json()["data"]["id"]

        deactivated = client.patch(f"{API}/driver-associations/{association_id}/deactivate", headers=headers)
        assert deactivated.status_code == 200
        assert deactivated.json()["data"]["isActive"] is False

        again = client.patch(f"{API}/driver-associations/{association_id}/deactivate", headers=headers)
        assert again.status_code == 404

    def test_update_rejects_foreign_fields(self, client, make_account, make_driver, auth_headers):
        account, driver = make_account(), make_driver()
        headers = auth_headers(account.id)
        created = client.post(f"{API}/driver-associations", headers=headers,
                              json={"driverId": driver.id, "associationType": "AGGREGATED"})
        association_id = created.json()["data"]["id"]

        response = client.put(f"{API}/driver-associations/{association_id}", headers=headers,
                              json={"driverId": "someone-else"})
        assert response.status_code == 422

    def test_duplicate_cpf_is_409(self, client, make_account, auth_headers):
        headers = auth_headers(make_account().id)
        body = {"cpf": "11122233344", "fullName": "Rita Dias"}
        assert client.post(f"{API}/drivers", headers=headers, json=body).status_code == 201

        response = client.post(f"{API}/drivers", headers=headers, json=body)
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "DUPLICATE_ENTRY"

    def test_active_association_with_end_date_is_400(self, client, make_account, make_driver, auth_headers):
        account, driver = make_account(), make_driver()
        response = client.post(f"{API}/driver-associations", headers=auth_headers(account.id),
                               json={"driverId": driver.id, "associationType": "AGGREGATED",
                                     "endDate": "2030-01-01T00:00:00Z"})
        assert response.status_code == 400
        assert response.json()["error"]["field"] == "endDate"

    def test_list_drivers_by_association_type(self, client, make_account, make_driver, auth_headers):
        account = make_account()
        fleet, shared = make_driver(full_name="Ana Fleet"), make_driver(full_name="Bruno Shared")
        headers = auth_headers(account.id)
        client.post(f"{API}/driver-associations", headers=headers,
                    json={"driverId": fleet.id, "associationType": "FLEET"})
        client.post(f"{API}/driver-associations", headers=headers,
                    json={"driverId": shared.id, "associationType": "AGGREGATED"})

        response = client.get(f"{API}/drivers", headers=headers, params={"associationType": "FLEET"})

        assert response.status_code == 200
        assert [d["id"] for d in response.json()["data"]] == [fleet.id]


class TestVehicleRoutes:

    def test_partner_cannot_edit_or_delete(self, client, make_account, auth_headers):
        owner, partner = make_account(), make_account()
        vehicle = _new_vehicle(client, auth_headers(owner.id))
        client.post(f"{API}/vehicles/associate-existing", headers=auth_headers(partner.id),
                    json={"vehicleId": vehicle["id"], "associationType": "AGGREGATED"})

        edit = client.patch(f"{API}/vehicles/{vehicle['id']}/data", headers=auth_headers(partner.id),
                            json={"brand": "Other"})
        delete = client.delete(f"{API}/vehicles/{vehicle['id']}/physical", headers=auth_headers(partner.id))

        assert edit.status_code == 403
        assert delete.status_code == 403

    def test_owner_deletes_sole_vehicle(self, client, make_account, auth_headers):
        owner = make_account()
        headers = auth_headers(owner.id)
        vehicle = _new_vehicle(client, headers)

        assert client.delete(f"{API}/vehicles/{vehicle['id']}/physical", headers=headers).status_code == 204
        assert client.get(f"{API}/vehicles/{vehicle['id']}", headers=headers).status_code == 404

    def test_manager_cannot_delete_vehicle(self, client, make_account, auth_headers):
        owner = make_account()
        vehicle = _new_vehicle(client, auth_headers(owner.id, "MANAGER"))

        response = client.delete(f"{API}/vehicles/{vehicle['id']}/physical", headers=auth_headers(owner.id, "MANAGER"))
        assert response.status_code == 403
