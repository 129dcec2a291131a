import pytest
from pydantic import ValidationError

from fleetlink.models import AssociationType, Vehicle, VehicleAccountAssociation
from fleetlink.schemas.vehicle import VehicleCreateRequest, VehicleUpdateRequest
from fleetlink.services.association_service import vehicle_association_service
from fleetlink.services.vehicle_service import vehicle_service
from fleetlink.utils.exceptions import (
    DuplicateAssociationException, DuplicateEntryException, ExclusivityConflictException,
    ForbiddenException, NotFoundException,
)

FLEET = AssociationType.FLEET
AGGREGATED = AssociationType.AGGREGATED


def _create(db, account, plate="QWE1A23", kind=FLEET, **extra):
    data = VehicleCreateRequest(plate=plate, brand="Volvo", model="FH 540", year=2023,
                                associationType=kind, **extra)
    return vehicle_service.create_vehicle_and_association(db, account.id, data, actor_id="u1")


class TestCreate:

    def test_creates_vehicle_with_first_association(self, db, make_account):
        account = make_account()
        result = _create(db, account)

        assert result["plate"] == "QWE1A23"
        assert result["association"]["associationType"] == "FLEET"
        assert result["association"]["isActive"] is True
        assert vehicle_association_service.exclusive_holder(db, result["id"]) == account.id

    def test_plate_is_normalized(self, db, make_account):
        result = _create(db, make_account(), plate=" abc1234 ")
        assert result["plate"] == "ABC1234"

    def test_invalid_plate(self):
        with pytest.raises(ValidationError):
            VehicleCreateRequest(plate="12-ABC", associationType=FLEET)

    def test_duplicate_plate(self, db, make_account):
        _create(db, make_account())
        with pytest.raises(DuplicateEntryException):
            _create(db, make_account())
        assert db.query(Vehicle).count() == 1

    def test_with_group(self, db, make_account, make_group):
        account = make_account()
        group = make_group(account, "South")
        result = _create(db, account, groupId=group.id)
        assert result["association"]["group"] == {"id": group.id, "name": "South"}

    def test_foreign_group_creates_nothing(self, db, make_account, make_group):
        account = make_account()
        group = make_group(make_account())
        with pytest.raises(NotFoundException):
            _create(db, account, groupId=group.id)
        assert db.query(Vehicle).count() == 0


class TestAssociateExisting:

    def test_shared_association(self, db, make_account):
        owner, partner = make_account(), make_account()
        vehicle = _create(db, owner)

        result = vehicle_service.associate_existing(db, partner.id, vehicle["id"], AGGREGATED)

        assert result["accountId"] == partner.id
        assert result["associationType"] == "AGGREGATED"

    def test_second_fleet_is_rejected(self, db, make_account):
        owner, partner = make_account(), make_account()
        vehicle = _create(db, owner)

        with pytest.raises(ExclusivityConflictException):
            vehicle_service.associate_existing(db, partner.id, vehicle["id"], FLEET)

    def test_existing_pair_is_a_duplicate(self, db, make_account):
        owner = make_account()
        vehicle = _create(db, owner)

        with pytest.raises(DuplicateAssociationException):
            vehicle_service.associate_existing(db, owner.id, vehicle["id"], AGGREGATED)

    def test_unknown_vehicle(self, db, make_account):
        with pytest.raises(NotFoundException):
            vehicle_service.associate_existing(db, make_account().id, "nope", AGGREGATED)


class TestListAndGet:

    def test_list_only_active_for_account(self, db, make_account):
        a, b = make_account(), make_account()
        _create(db, a, plate="AAA1111")
        _create(db, a, plate="AAA2222")
        shared = _create(db, b, plate="BBB1111")
        vehicle_service.associate_existing(db, a.id, shared["id"], AGGREGATED)

        page = vehicle_service.list_for_account(db, a.id, page=1, limit=10)
        assert page["total"] == 3
        assert [v["plate"] for v in page["data"]] == ["AAA1111", "AAA2222", "BBB1111"]

        filtered = vehicle_service.list_for_account(db, a.id, page=1, limit=10, search="bbb")
        assert [v["plate"] for v in filtered["data"]] == ["BBB1111"]

    def test_get_is_scoped_to_account(self, db, make_account):
        a, b = make_account(), make_account()
        vehicle = _create(db, a)

        assert vehicle_service.get_for_account(db, vehicle["id"], a.id)["id"] == vehicle["id"]
        with pytest.raises(NotFoundException):
            vehicle_service.get_for_account(db, vehicle["id"], b.id)


class TestUpdateVehicleData:

    def test_fleet_owner_can_edit(self, db, make_account):
        owner = make_account()
        vehicle = _create(db, owner)

        result = vehicle_service.update_vehicle_data(
            db, vehicle["id"], owner.id, VehicleUpdateRequest(brand="Scania", year=2024))

        assert result["brand"] == "Scania"
        assert result["year"] == 2024
        assert result["model"] == "FH 540"

    def test_shared_account_cannot_edit_while_fleet_exists(self, db, make_account):
        owner, partner = make_account(), make_account()
        vehicle = _create(db, owner)
        vehicle_service.associate_existing(db, partner.id, vehicle["id"], AGGREGATED)

        with pytest.raises(ForbiddenException):
            vehicle_service.update_vehicle_data(db, vehicle["id"], partner.id, VehicleUpdateRequest(brand="X"))

    def test_unrelated_account_cannot_edit(self, db, make_account):
        vehicle = _create(db, make_account())
        with pytest.raises(ForbiddenException):
            vehicle_service.update_vehicle_data(db, vehicle["id"], make_account().id, VehicleUpdateRequest(brand="X"))

    def test_any_associated_account_can_edit_without_fleet_holder(self, db, make_account):
        account = make_account()
        vehicle = _create(db, account, kind=AGGREGATED)

        result = vehicle_service.update_vehicle_data(db, vehicle["id"], account.id, VehicleUpdateRequest(model="FM"))
        assert result["model"] == "FM"

    def test_plate_clash(self, db, make_account):
        owner = make_account()
        _create(db, owner, plate="AAA1111")
        vehicle = _create(db, owner, plate="AAA2222")

        with pytest.raises(DuplicateEntryException):
            vehicle_service.update_vehicle_data(db, vehicle["id"], owner.id, VehicleUpdateRequest(plate="AAA1111"))


class TestDeleteVehicle:

    def test_only_fleet_owner(self, db, make_account):
        owner, partner = make_account(), make_account()
        vehicle = _create(db, owner)
        vehicle_service.associate_existing(db, partner.id, vehicle["id"], AGGREGATED)

        with pytest.raises(ForbiddenException):
            vehicle_service.delete_vehicle(db, vehicle["id"], partner.id)

    def test_blocked_while_others_are_active(self, db, make_account):
        owner, partner = make_account(), make_account()
        vehicle = _create(db, owner)
        vehicle_service.associate_existing(db, partner.id, vehicle["id"], AGGREGATED)

        with pytest.raises(ForbiddenException):
            vehicle_service.delete_vehicle(db, vehicle["id"], owner.id)
        assert db.query(Vehicle).count() == 1

    def test_cascades_to_all_associations(self, db, make_account):
        owner, partner = make_account(), make_account()
        vehicle = _create(db, owner)
        shared = vehicle_service.associate_existing(db, partner.id, vehicle["id"], AGGREGATED)
        vehicle_association_service.deactivate(db, shared["id"], partner.id)

        vehicle_service.delete_vehicle(db, vehicle["id"], owner.id)

        assert db.query(Vehicle).count() == 0
        assert db.query(VehicleAccountAssociation).count() == 0

    def test_owner_may_delete_after_deactivating_own_link(self, db, make_account):
        owner = make_account()
        vehicle = _create(db, owner)
        holding = db.query(VehicleAccountAssociation).filter_by(vehicleId=vehicle["id"]).one()
        vehicle_association_service.deactivate(db, holding.id, owner.id)

        assert not vehicle_association_service.holds_exclusive(db, vehicle["id"], owner.id)
        assert vehicle_association_service.holds_exclusive(db, vehicle["id"], owner.id, include_inactive=True)

        vehicle_service.delete_vehicle(db, vehicle["id"], owner.id)
        assert db.query(Vehicle).count() == 0
