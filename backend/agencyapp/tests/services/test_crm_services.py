"""
Tests for the agent-scoped CRM services: clients, policies and claims.

CRITICAL: an agent must never read or attach records to another agent's
client. Foreign ids behave exactly like missing ones.
"""

import random
from datetime import date, datetime, timezone
from decimal import Decimal
from unittest.mock import patch

import pytest

from agencyapp.models import Claim, Client, Policy
from agencyapp.platform.errors import ConflictError, NotFoundError, ValidationError
from agencyapp.services.claim_service import CLAIM_TYPES, ClaimService
from agencyapp.services.client_service import ClientService
from agencyapp.services.policy_service import (
    POLICY_TYPES,
    PolicyService,
    calculate_commission,
    generate_policy_number,
)
from agencyapp.tests.conftest import OTHER_USER_ID, TEST_USER_ID

TODAY = date(2024, 3, 1)


@pytest.fixture
def own_client(db_session):
    client = Client(created_by=TEST_USER_ID, name="Yaw Owusu")
    db_session.add(client)
    db_session.commit()
    return client


@pytest.fixture
def foreign_client(db_session):
    client = Client(created_by=OTHER_USER_ID, name="Efua Asante")
    db_session.add(client)
    db_session.commit()
    return client


def policy_fields(client_id, **overrides):
    fields = {
        "client_id": client_id,
        "policy_type": "Motor",
        "premium": Decimal("1200"),
        "commission_rate": Decimal("12.5"),
        "start_date": date(2024, 3, 1),
        "end_date": date(2025, 3, 1),
        "today": TODAY,
    }
    fields.update(overrides)
    return fields


def claim_fields(client_id, **overrides):
    fields = {
        "client_id": client_id,
        "claim_type": "Motor Accident",
        "claim_date": date(2024, 2, 20),
        "location": "Spintex Road, Accra",
        "description": "Rear-ended at a junction",
        "amount": Decimal("3500"),
    }
    fields.update(overrides)
    return fields


# ============================================================================
# TEST SUITE: CLIENTS
# ============================================================================

class TestClientService:

    def test_phone_is_stored_in_sms_form(self, db_session):
        client = ClientService(db_session, TEST_USER_ID).create_client("Yaw Owusu", phone_number="055 123 4567")

        assert client.phone_number == "+233551234567"

    @pytest.mark.parametrize("phone", ["n/a", "-", "+"])
    def test_phone_without_digits_is_rejected(self, db_session, phone):
        with pytest.raises(ValidationError) as exc_info:
            ClientService(db_session, TEST_USER_ID).create_client("Yaw Owusu", phone_number=phone)

        assert exc_info.value.details["field"] == "phone_number"
        assert db_session.query(Client).count() == 0

    @pytest.mark.parametrize("phone", [None, "", "   "])
    def test_missing_phone_is_stored_as_null(self, db_session, phone):
        client = ClientService(db_session, TEST_USER_ID).create_client("Yaw Owusu", phone_number=phone)

        assert client.phone_number is None

    def test_foreign_client_is_not_found(self, db_session, foreign_client):
        with pytest.raises(NotFoundError):
            ClientService(db_session, TEST_USER_ID).get_client(foreign_client.id)


# ============================================================================
# TEST SUITE: POLICIES
# ============================================================================

class TestPolicyNumbers:

    def test_format(self):
        now = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
        number = generate_policy_number(now, rng=random.Random(7))

        prefix, clock, suffix = number.split("-")
        assert prefix == "POL"
        assert clock == str(int(now.timestamp() * 1000))[-6:]
        assert len(suffix) == 3 and suffix.isdigit()

    @pytest.mark.parametrize("premium,rate,expected", [
        ("1200", "12.5", "150.00"),
        ("999.99", "10", "100.00"),
        ("500", "0", "0.00"),
        ("500", "100", "500.00"),
    ])
    def test_commission(self, premium, rate, expected):
        assert calculate_commission(Decimal(premium), Decimal(rate)) == Decimal(expected)


class TestPolicyService:

    def test_create_computes_commission_and_number(self, db_session, own_client):
        policy = PolicyService(db_session, TEST_USER_ID).create_policy(**policy_fields(own_client.id))

        assert policy.created_by == TEST_USER_ID
        assert policy.commission_amount == Decimal("150.00")
        assert policy.policy_number.startswith("POL-")

    def test_agent_supplied_number_is_kept(self, db_session, own_client):
        policy = PolicyService(db_session, TEST_USER_ID).create_policy(
            **policy_fields(own_client.id, policy_number=" MTR-0001 ")
        )

        assert policy.policy_number == "MTR-0001"

    def test_duplicate_number_conflicts(self, db_session, own_client):
        service = PolicyService(db_session, TEST_USER_ID)
        service.create_policy(**policy_fields(own_client.id, policy_number="MTR-0001"))

        with pytest.raises(ConflictError):
            service.create_policy(**policy_fields(own_client.id, policy_number="MTR-0001"))

        assert db_session.query(Policy).count() == 1

    def test_generated_number_collision_is_retried(self, db_session, own_client):
        service = PolicyService(db_session, TEST_USER_ID)
        service.create_policy(**policy_fields(own_client.id, policy_number="POL-000001-001"))

        with patch(
            "agencyapp.services.policy_service.generate_policy_number",
            side_effect=["POL-000001-001", "POL-000001-002"],
        ):
            policy = service.create_policy(**policy_fields(own_client.id))

        assert policy.policy_number == "POL-000001-002"

    def test_foreign_client_is_not_found(self, db_session, foreign_client):
        with pytest.raises(NotFoundError):
            PolicyService(db_session, TEST_USER_ID).create_policy(**policy_fields(foreign_client.id))

        assert db_session.query(Policy).count() == 0

    @pytest.mark.parametrize("overrides,field", [
        ({"policy_type": "Pet"}, "policy_type"),
        ({"premium": Decimal("0")}, "premium"),
        ({"premium": "lots"}, "premium"),
        ({"commission_rate": Decimal("-1")}, "commission_rate"),
        ({"commission_rate": Decimal("100.5")}, "commission_rate"),
        ({"end_date": date(2024, 2, 1)}, "end_date"),
        ({"start_date": date(2023, 1, 1), "end_date": date(2024, 3, 1)}, "end_date"),
    ])
    def test_invalid_fields(self, db_session, own_client, overrides, field):
        with pytest.raises(ValidationError) as exc_info:
            PolicyService(db_session, TEST_USER_ID).create_policy(**policy_fields(own_client.id, **overrides))

        assert exc_info.value.details["field"] == field

    def test_every_policy_type_is_accepted(self, db_session, own_client):
        service = PolicyService(db_session, TEST_USER_ID)
        for policy_type in POLICY_TYPES:
            service.create_policy(
                **policy_fields(own_client.id, policy_type=policy_type, policy_number=f"N-{policy_type}")
            )

        assert db_session.query(Policy).count() == len(POLICY_TYPES)

    def test_list_is_scoped_to_agent(self, db_session, own_client, foreign_client):
        PolicyService(db_session, TEST_USER_ID).create_policy(**policy_fields(own_client.id))
        PolicyService(db_session, OTHER_USER_ID).create_policy(**policy_fields(foreign_client.id))

        mine = PolicyService(db_session, TEST_USER_ID).list_policies()

        assert [p.client_id for p in mine] == [own_client.id]

    def test_list_filters_by_client(self, db_session, own_client):
        second = ClientService(db_session, TEST_USER_ID).create_client("Abena Ofori")
        service = PolicyService(db_session, TEST_USER_ID)
        service.create_policy(**policy_fields(own_client.id))
        service.create_policy(**policy_fields(second.id))

        assert [p.client_id for p in service.list_policies(client_id=second.id)] == [second.id]

    def test_other_agents_policy_is_not_found(self, db_session, foreign_client):
        theirs = PolicyService(db_session, OTHER_USER_ID).create_policy(**policy_fields(foreign_client.id))

        with pytest.raises(NotFoundError):
            PolicyService(db_session, TEST_USER_ID).get_policy(theirs.id)


# ============================================================================
# TEST SUITE: CLAIMS
# ============================================================================

class TestClaimService:

    def test_create_and_list(self, db_session, own_client):
        service = ClaimService(db_session, TEST_USER_ID)
        claim = service.create_claim(**claim_fields(own_client.id))

        assert claim.amount == Decimal("3500.00")
        assert [c.id for c in service.list_claims(own_client.id)] == [claim.id]

    def test_text_fields_are_trimmed(self, db_session, own_client):
        claim = ClaimService(db_session, TEST_USER_ID).create_claim(
            **claim_fields(own_client.id, location="  Kumasi  ", description=" Burst pipe ")
        )

        assert claim.location == "Kumasi"
        assert claim.description == "Burst pipe"

    @pytest.mark.parametrize("overrides,field", [
        ({"claim_type": "Alien Abduction"}, "claim_type"),
        ({"location": "  "}, "location"),
        ({"description": ""}, "description"),
        ({"amount": Decimal("0")}, "amount"),
        ({"amount": "-20"}, "amount"),
        ({"amount": "NaN"}, "amount"),
        ({"amount": None}, "amount"),
    ])
    def test_invalid_fields(self, db_session, own_client, overrides, field):
        with pytest.raises(ValidationError) as exc_info:
            ClaimService(db_session, TEST_USER_ID).create_claim(**claim_fields(own_client.id, **overrides))

        assert exc_info.value.details["field"] == field
        assert db_session.query(Claim).count() == 0

    def test_claim_types_match_form_options(self):
        assert "Motor Accident" in CLAIM_TYPES
        assert "Other" in CLAIM_TYPES

    def test_foreign_client_claims_are_not_found(self, db_session, foreign_client):
        ClaimService(db_session, OTHER_USER_ID).create_claim(**claim_fields(foreign_client.id))

        with pytest.raises(NotFoundError):
            ClaimService(db_session, TEST_USER_ID).list_claims(foreign_client.id)
        with pytest.raises(NotFoundError):
            ClaimService(db_session, TEST_USER_ID).create_claim(**claim_fields(foreign_client.id))
