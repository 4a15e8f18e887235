"""Tests for message validation and scheduling."""
from datetime import datetime, timedelta, timezone

import pytest

from futureme.database.messages import MessageStatus
from futureme.errors import MessageValidationError, StoreError
from futureme.services.scheduling import schedule_message
from futureme.utils.validation import (
    parse_delivery_at,
    validate_email,
    validate_message_data,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestValidateMessageData:
    def test_valid_message_has_no_errors(self):
        assert validate_message_data("Hello", "Body", NOW + timedelta(days=1), now=NOW) == []

    def test_missing_fields(self):
        errors = validate_message_data("  ", "", None, now=NOW)
        assert "Subject is required" in errors
        assert "Message content is required" in errors
        assert "Delivery date and time is required" in errors

    def test_length_limits(self):
        errors = validate_message_data("s" * 201, "b" * 10_001, NOW + timedelta(days=1), now=NOW)
        assert any("Subject must be less than 200" in e for e in errors)
        assert any("Message must be less than 10,000" in e for e in errors)

    def test_delivery_must_be_strictly_future(self):
        assert "Delivery date must be in the future" in validate_message_data("s", "b", NOW, now=NOW)

    def test_delivery_at_most_fifty_years_ahead(self):
        at_limit = NOW.replace(year=NOW.year + 50)
        assert validate_message_data("s", "b", at_limit, now=NOW) == []
        errors = validate_message_data("s", "b", at_limit + timedelta(seconds=1), now=NOW)
        assert any("50 years" in e for e in errors)

    def test_unparseable_date(self):
        assert "Invalid delivery date format" in validate_message_data("s", "b", "next tuesday", now=NOW)

    def test_iso_strings_are_accepted(self):
        parsed = parse_delivery_at("2027-01-01T09:30:00Z")
        assert parsed == datetime(2027, 1, 1, 9, 30, tzinfo=timezone.utc)
        assert parse_delivery_at("2027-01-01T09:30:00").tzinfo == timezone.utc


class TestValidateEmail:
    @pytest.mark.parametrize("email", ["a@b.co", "first.last+tag@example.org"])
    def test_valid(self, email):
        assert validate_email(email)

    @pytest.mark.parametrize("email", ["", "no-at.example.com", "a@b", "a b@c.com"])
    def test_invalid(self, email):
        assert not validate_email(email)


class TestScheduleMessage:
    @pytest.mark.asyncio
    async def test_stores_encrypted_scheduled_message(self, store, codec):
        created = await schedule_message(
            store, codec,
            owner_id="user_1",
            recipient_email="ada@example.com",
            subject="  Dear me  ",
            body="Remember the plan.\n",
            delivery_at=NOW + timedelta(days=365),
            now=NOW,
        )

        assert created.id
        assert created.status == MessageStatus.SCHEDULED
        assert created.delivered_at is None
        assert "Dear me" not in created.encrypted_subject
        assert codec.decrypt(created.encrypted_subject) == "Dear me"
        assert codec.decrypt(created.encrypted_body) == "Remember the plan."

        stored = await store.get_message(created.id)
        assert stored.delivery_at == NOW + timedelta(days=365)

    @pytest.mark.asyncio
    async def test_rejects_invalid_input_without_storing(self, store, codec):
        with pytest.raises(MessageValidationError) as exc:
            await schedule_message(
                store, codec,
                owner_id="user_1",
                recipient_email="not-an-email",
                subject="",
                body="Body",
                delivery_at=NOW - timedelta(days=1),
                now=NOW,
            )

        assert "Subject is required" in exc.value.errors
        assert "Recipient email is invalid" in exc.value.errors
        assert "Delivery date must be in the future" in exc.value.errors
        assert await store.count_by_status() == {"scheduled": 0, "delivered": 0, "failed": 0}

    @pytest.mark.asyncio
    async def test_store_errors_propagate(self, store, codec):
        store.fail_next("create_message")
        with pytest.raises(StoreError):
            await schedule_message(
                store, codec,
                owner_id="user_1",
                recipient_email="ada@example.com",
                subject="Hi",
                body="Body",
                delivery_at=NOW + timedelta(days=1),
                now=NOW,
            )

    @pytest.mark.asyncio
    async def test_missing_encryption_key_is_not_a_validation_error(self, store):
        from futureme.utils.encryption import PayloadCodec

        with pytest.raises(ValueError, match="APP_ENCRYPTION_KEY") as exc:
            await schedule_message(
                store, PayloadCodec(None),
                owner_id="user_1",
                recipient_email="ada@example.com",
                subject="Hi",
                body="Body",
                delivery_at=NOW + timedelta(days=1),
                now=NOW,
            )

        assert not isinstance(exc.value, MessageValidationError)
        assert await store.count_by_status() == {"scheduled": 0, "delivered": 0, "failed": 0}
