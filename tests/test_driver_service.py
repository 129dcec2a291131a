import pytest
from pydantic import ValidationError

from fleetlink.models import AssociationType, Driver, DriverAccountAssociation
from fleetlink.models.driver import DriverStatus
from fleetlink.schemas.driver import DriverCreateRequest, DriverQueryParams, DriverUpdateRequest
from fleetlink.services.association_service import driver_association_service
from fleetlink.services.driver_service import driver_service
from fleetlink.utils.exceptions import DuplicateEntryException, InvalidFieldException, NotFoundException


def _register(db, cpf="12345678901", name="Joana Pereira", **extra):
    return driver_service.create_driver(db, DriverCreateRequest(cpf=cpf, fullName=name, **extra))


def test_create_defaults_to_active(db):
    result = _register(db, email="joana@fleetlink.com.br")

    assert result["status"] == "ACTIVE"
    assert result["email"] == "joana@fleetlink.com.br"


def test_cpf_must_be_eleven_digits():
    with pytest.raises(ValidationError):
        DriverCreateRequest(cpf="123.456.789-01", fullName="Someone")


def test_duplicate_cpf(db):
    _register(db)
    with pytest.raises(DuplicateEntryException) as exc:
        _register(db, name="Someone Else")
    assert exc.value.detail["error"]["field"] == "cpf"


def test_update_and_get(db):
    driver = _register(db)
    driver_service.update_driver(db, driver["id"], DriverUpdateRequest(status=DriverStatus.ON_LEAVE, phone="555"))

    result = driver_service.get_driver(db, driver["id"])
    assert result["status"] == "ON_LEAVE"
    assert result["phone"] == "555"
    assert result["activeAssociations"] == []


def test_get_unknown(db):
    with pytest.raises(NotFoundException):
        driver_service.get_driver(db, "missing")


def test_list_filters_by_active_association(db, make_account):
    account = make_account("Acme")
    fleet_driver = _register(db, cpf="11111111111", name="Fleet Driver")
    _register(db, cpf="22222222222", name="Free Driver")
    driver_association_service.add_or_update(db, account.id, fleet_driver["id"], AssociationType.FLEET)

    by_type = driver_service.list_drivers(db, DriverQueryParams(associationType=AssociationType.FLEET))
    by_account = driver_service.list_drivers(db, DriverQueryParams(associatedAccountId=account.id))
    everyone = driver_service.list_drivers(db, DriverQueryParams())

    assert [d["fullName"] for d in by_type["data"]] == ["Fleet Driver"]
    assert by_account["data"][0]["activeAssociations"][0]["account"]["companyName"] == "Acme"
    assert [d["fullName"] for d in everyone["data"]] == ["Fleet Driver", "Free Driver"]


def test_list_rejects_unknown_sort(db):
    with pytest.raises(InvalidFieldException):
        driver_service.list_drivers(db, DriverQueryParams(sortBy="password"))


def test_remove_closes_and_drops_associations(db, make_account):
    account = make_account()
    driver = _register(db)
    driver_association_service.add_or_update(db, account.id, driver["id"], AssociationType.AGGREGATED)

    driver_service.remove_driver(db, driver["id"])

    assert db.query(Driver).count() == 0
    assert db.query(DriverAccountAssociation).count() == 0
