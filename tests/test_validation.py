"""Tests for per-step form validation."""

from bossboarding.onboarding.validation import is_step_valid, missing_fields
from bossboarding.onboarding.wizard import OnboardingStep


GENERAL = {
    "businessName": "Suds City",
    "ownerName": "Dana Reyes",
    "email": "dana@sudscity.com",
    "phone": "555-0100",
}


class TestGeneral:
    def test_complete_general_step(self) -> None:
        assert is_step_valid(OnboardingStep.GENERAL, GENERAL)

    def test_blank_fields_are_missing(self) -> None:
        form = dict(GENERAL, ownerName="  ", phone=None)
        assert missing_fields(OnboardingStep.GENERAL, form) == ["ownerName", "phone"]

    def test_password_must_match_confirmation(self) -> None:
        form = dict(GENERAL, password="longenough", confirmPassword="different")
        assert missing_fields(OnboardingStep.GENERAL, form) == ["confirmPassword"]


class TestMachinesAndEmployees:
    def test_at_least_one_machine(self) -> None:
        assert missing_fields(OnboardingStep.MACHINES, {"machines": []}) == ["machines"]

    def test_machine_needs_make_and_model(self) -> None:
        form = {"machines": [{"make": "Speed Queen", "model": "SC40"}, {"make": "", "model": "T30"}]}
        assert missing_fields(OnboardingStep.MACHINES, form) == ["machines[1]"]

    def test_employee_pin_is_four_digits(self) -> None:
        form = {"employees": [
            {"name": "Sam", "phone": "555-0101", "pin": "1234"},
            {"name": "Alex", "phone": "555-0102", "pin": "12a4"},
        ]}
        assert missing_fields(OnboardingStep.EMPLOYEES, form) == ["employees[1]"]

    def test_no_employees_is_valid(self) -> None:
        assert is_step_valid(OnboardingStep.EMPLOYEES, {})


class TestShippingKioskPci:
    def test_shipping_same_as_location_checks_location_address(self) -> None:
        form = {"shippingSameAsLocation": True, "locationAddress": "1 Main St",
                "locationCity": "Austin", "locationState": "TX", "locationZip": "78701"}
        assert is_step_valid(OnboardingStep.SHIPPING, form)

    def test_separate_shipping_address_required(self) -> None:
        form = {"shippingSameAsLocation": False, "shippingAddress": "9 Dock Rd"}
        assert missing_fields(OnboardingStep.SHIPPING, form) == ["shippingCity", "shippingState", "shippingZip"]

    def test_kiosk_requested_without_kiosks(self) -> None:
        assert missing_fields(OnboardingStep.KIOSK, {"hasKiosk": True}) == ["kiosks"]

    def test_pci_needs_consent(self) -> None:
        form = {"pciRepresentativeName": "Dana", "pciCompanyName": "Suds LLC", "pciTitle": "Owner"}
        assert missing_fields(OnboardingStep.PCI, form) == ["pciConsent"]

    def test_informational_steps_always_valid(self) -> None:
        for step in (OnboardingStep.PHOTOS, OnboardingStep.MERCHANT,
                     OnboardingStep.PAYMENT, OnboardingStep.REVIEW):
            assert is_step_valid(step, {})
