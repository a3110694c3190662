"""Tests for the external method table — names, coercion, dispatch."""

import pytest

from jewelry_lifecycle.engine import abi
from jewelry_lifecycle.engine.errors import NotAuthorized
from jewelry_lifecycle.engine.registry import LifecycleRegistry


DEPLOYER = "0x" + "1" * 40
MINING = "0x" + "2" * 40
CUTTING = "0x" + "3" * 40
GRADING = "0x" + "4" * 40
MAKER = "0x" + "5" * 40
BUYER = "0x" + "6" * 40


class TestMethodTable:
    def test_external_names(self) -> None:
        assert set(abi.METHODS) == {
            "setRoles",
            "createJewelry",
            "updateStatusToPolished",
            "generateCertificate",
            "updateStatusToInStock",
            "transferOwnership",
            "jewelries",
        }

    def test_every_method_exists_on_registry(self) -> None:
        for spec in abi.METHODS.values():
            assert callable(getattr(LifecycleRegistry, spec.attribute))

    def test_unknown_method(self) -> None:
        with pytest.raises(ValueError, match="Unknown method"):
            abi.lookup("burnJewelry")


class TestCoercion:
    def test_uint_from_text(self) -> None:
        spec = abi.lookup("generateCertificate")
        assert abi.coerce_args(spec, ["1", "12345"]) == [1, 12345]

    def test_hex_uint(self) -> None:
        spec = abi.lookup("updateStatusToPolished")
        assert abi.coerce_args(spec, ["0x10"]) == [16]

    @pytest.mark.parametrize("value", ["-1", "abc", True])
    def test_bad_uint(self, value) -> None:
        spec = abi.lookup("updateStatusToPolished")
        with pytest.raises(ValueError, match="unsigned integer"):
            abi.coerce_args(spec, [value])

    def test_wrong_arity(self) -> None:
        spec = abi.lookup("transferOwnership")
        with pytest.raises(ValueError, match="expects 2"):
            abi.coerce_args(spec, ["1"])


class TestCall:
    def test_full_lifecycle_by_external_name(self) -> None:
        registry = LifecycleRegistry(admin=DEPLOYER)
        abi.call(registry, DEPLOYER, "setRoles", [MINING, CUTTING, GRADING, MAKER])
        abi.call(registry, MINING, "createJewelry", ["Sapphire"])
        abi.call(registry, CUTTING, "updateStatusToPolished", ["1"])
        abi.call(registry, GRADING, "generateCertificate", ["1", "67890"])
        abi.call(registry, MAKER, "updateStatusToInStock", ["1"])

        view = abi.call(registry, "", "jewelries", ["1"])
        assert view == {
            "description": "Sapphire",
            "status": 3,
            "currentOwner": MINING,
            "CAId": 67890,
        }

        abi.call(registry, MAKER, "transferOwnership", ["1", BUYER])
        view = abi.call(registry, "", "jewelries", [1])
        assert view["status"] == 5
        assert view["currentOwner"] == BUYER

    def test_guard_errors_propagate(self) -> None:
        registry = LifecycleRegistry(admin=DEPLOYER)
        abi.call(registry, DEPLOYER, "setRoles", [MINING, CUTTING, GRADING, MAKER])
        abi.call(registry, MINING, "createJewelry", ["Topaz"])
        with pytest.raises(NotAuthorized, match="Not authorized"):
            abi.call(registry, BUYER, "updateStatusToPolished", ["1"])
