from unittest.mock import AsyncMock

import pytest
from exceptions import (
    AuthorizationError,
    CipherError,
    IdentityError,
    KeyNotFoundError,
    NotFoundError,
)
from messaging import OUTGOING, Decrypted, Failed, MessagingService

ALICE = 1
BOB = 2
CAROL = 3


@pytest.fixture
def alice_and_bob(service):
    async def _setup():
        await service.generate_keys(ALICE)
        await service.generate_keys(BOB)
        return service
    return _setup


class TestSend:

    @pytest.mark.asyncio
    async def test_send_stores_only_ciphertext(self, alice_and_bob):
        service = await alice_and_bob()
        envelope_id = await service.send(BOB, ALICE, "hello")

        envelope = await service.ledger.get(envelope_id)
        assert envelope.ciphertext != "hello"
        assert "hello" not in envelope.ciphertext
        assert envelope.is_read is False

    @pytest.mark.asyncio
    async def test_send_to_user_without_keys(self, service):
        await service.generate_keys(BOB)
        with pytest.raises(KeyNotFoundError) as exc_info:
            await service.send(BOB, ALICE, "hello")
        assert exc_info.value.user_id == ALICE

    @pytest.mark.asyncio
    async def test_sender_needs_no_keys(self, service):
        await service.generate_keys(ALICE)
        envelope_id = await service.send(CAROL, ALICE, "hi from carol")
        assert envelope_id

    @pytest.mark.asyncio
    async def test_send_oversized_message(self, alice_and_bob):
        service = await alice_and_bob()
        with pytest.raises(CipherError):
            await service.send(BOB, ALICE, "x" * 191)
        assert await service.ledger.list_unread(ALICE) == []

    @pytest.mark.asyncio
    async def test_send_invalid_sender(self, alice_and_bob):
        service = await alice_and_bob()
        with pytest.raises(IdentityError):
            await service.send(0, ALICE, "hello")

    @pytest.mark.asyncio
    async def test_send_with_attachment(self, alice_and_bob):
        service = await alice_and_bob()
        envelope_id = await service.send(BOB, ALICE, "see file", attachment_ref="files/42")
        assert (await service.ledger.get(envelope_id)).attachment_ref == "files/42"


class TestDrainInbox:

    @pytest.mark.asyncio
    async def test_hello_scenario(self, alice_and_bob):
        service = await alice_and_bob()
        await service.send(BOB, ALICE, "hello")

        views = await service.drain_inbox(ALICE)
        assert len(views) == 1
        assert views[0].result == Decrypted("hello")
        assert views[0].envelope.is_read is True
        assert await service.ledger.list_unread(ALICE) == []

        assert await service.drain_inbox(ALICE) == []

    @pytest.mark.asyncio
    async def test_drain_preserves_send_order(self, alice_and_bob):
        service = await alice_and_bob()
        for text in ("t1", "t2", "t3"):
            await service.send(BOB, ALICE, text)

        views = await service.drain_inbox(ALICE)
        assert [v.result.plaintext for v in views] == ["t1", "t2", "t3"]

    @pytest.mark.asyncio
    async def test_corrupted_envelope_isolated(self, alice_and_bob):
        service = await alice_and_bob()
        await service.send(BOB, ALICE, "first")
        await service.ledger.append(BOB, ALICE, "Y29ycnVwdGVk")
        await service.send(BOB, ALICE, "third")

        views = await service.drain_inbox(ALICE)
        assert len(views) == 3
        assert views[0].result == Decrypted("first")
        assert isinstance(views[1].result, Failed)
        assert views[1].ok is False
        assert views[2].result == Decrypted("third")
        assert await service.ledger.list_unread(ALICE) == []

    @pytest.mark.asyncio
    async def test_message_for_old_key_fails_per_item(self, alice_and_bob):
        service = await alice_and_bob()
        await service.send(BOB, ALICE, "before rotation")
        await service.generate_keys(ALICE)
        await service.send(BOB, ALICE, "after rotation")

        views = await service.drain_inbox(ALICE)
        assert isinstance(views[0].result, Failed)
        assert views[1].result == Decrypted("after rotation")

    @pytest.mark.asyncio
    async def test_failed_reason_has_no_plaintext(self, alice_and_bob):
        service = await alice_and_bob()
        await service.ledger.append(BOB, ALICE, "!!!")
        views = await service.drain_inbox(ALICE)
        assert views[0].result.reason

    @pytest.mark.asyncio
    async def test_drain_without_keys_does_not_touch_ledger(self, key_store):
        ledger = AsyncMock()
        service = MessagingService(key_store, ledger)

        with pytest.raises(KeyNotFoundError):
            await service.drain_inbox(ALICE)
        ledger.list_unread.assert_not_called()
        ledger.mark_read_many.assert_not_called()
        ledger.mark_all_unread_as_read.assert_not_called()

    @pytest.mark.asyncio
    async def test_message_arriving_mid_drain_is_not_lost(self, alice_and_bob):
        service = await alice_and_bob()
        await service.send(BOB, ALICE, "first")

        list_unread = service.ledger.list_unread
        sent_during_drain = []

        async def list_then_send(user_id):
            envelopes = await list_unread(user_id)
            if not sent_during_drain:
                sent_during_drain.append(await service.send(BOB, ALICE, "second"))
            return envelopes

        service.ledger.list_unread = list_then_send

        first_batch = await service.drain_inbox(ALICE)
        second_batch = await service.drain_inbox(ALICE)

        assert [v.result.plaintext for v in first_batch] == ["first"]
        assert [v.result.plaintext for v in second_batch] == ["second"]
        assert second_batch[0].envelope.id == sent_during_drain[0]
        assert await service.drain_inbox(ALICE) == []

    @pytest.mark.asyncio
    async def test_drain_only_marks_own_messages(self, alice_and_bob):
        service = await alice_and_bob()
        await service.send(ALICE, BOB, "for bob")
        await service.send(BOB, ALICE, "for alice")

        await service.drain_inbox(ALICE)
        assert len(await service.ledger.list_unread(BOB)) == 1


class TestPeekUnread:

    @pytest.mark.asyncio
    async def test_peek_does_not_mark_read(self, alice_and_bob):
        service = await alice_and_bob()
        await service.send(BOB, ALICE, "hello")

        first = await service.peek_unread(ALICE)
        second = await service.peek_unread(ALICE)
        assert first[0].result == Decrypted("hello")
        assert len(second) == 1
        assert second[0].envelope.is_read is False


class TestHistory:

    @pytest.mark.asyncio
    async def test_history_marks_outgoing(self, alice_and_bob):
        service = await alice_and_bob()
        await service.send(BOB, ALICE, "hi alice")
        await service.send(ALICE, BOB, "hi bob")
        await service.send(BOB, ALICE, "how are you")

        views = await service.history(ALICE, BOB)
        assert [v.result for v in views] == [
            Decrypted("hi alice"),
            OUTGOING,
            Decrypted("how are you"),
        ]

    @pytest.mark.asyncio
    async def test_history_from_other_side(self, alice_and_bob):
        service = await alice_and_bob()
        await service.send(BOB, ALICE, "hi alice")
        await service.send(ALICE, BOB, "hi bob")

        views = await service.history(BOB, ALICE)
        assert [v.result for v in views] == [OUTGOING, Decrypted("hi bob")]

    @pytest.mark.asyncio
    async def test_history_excludes_other_conversations(self, alice_and_bob):
        service = await alice_and_bob()
        await service.generate_keys(CAROL)
        await service.send(CAROL, ALICE, "from carol")
        await service.send(BOB, ALICE, "from bob")

        views = await service.history(ALICE, BOB)
        assert [v.result for v in views] == [Decrypted("from bob")]

    @pytest.mark.asyncio
    async def test_history_does_not_change_read_state(self, alice_and_bob):
        service = await alice_and_bob()
        await service.send(BOB, ALICE, "hello")

        await service.history(ALICE, BOB)
        assert len(await service.ledger.list_unread(ALICE)) == 1

    @pytest.mark.asyncio
    async def test_history_isolates_corrupt_item(self, alice_and_bob):
        service = await alice_and_bob()
        await service.ledger.append(BOB, ALICE, "garbage")
        await service.send(BOB, ALICE, "ok")

        views = await service.history(ALICE, BOB)
        assert isinstance(views[0].result, Failed)
        assert views[1].result == Decrypted("ok")

    @pytest.mark.asyncio
    async def test_history_requires_keys(self, service):
        with pytest.raises(KeyNotFoundError):
            await service.history(ALICE, BOB)


class TestMarkRead:

    @pytest.mark.asyncio
    async def test_mark_read_twice(self, alice_and_bob):
        service = await alice_and_bob()
        envelope_id = await service.send(BOB, ALICE, "hello")

        assert (await service.mark_read(envelope_id, ALICE)).is_read is True
        assert (await service.mark_read(envelope_id, ALICE)).is_read is True

    @pytest.mark.asyncio
    async def test_mark_read_by_sender_forbidden(self, alice_and_bob):
        service = await alice_and_bob()
        envelope_id = await service.send(BOB, ALICE, "hello")

        with pytest.raises(AuthorizationError):
            await service.mark_read(envelope_id, BOB)
        assert (await service.ledger.get(envelope_id)).is_read is False

    @pytest.mark.asyncio
    async def test_mark_read_unknown(self, service):
        with pytest.raises(NotFoundError):
            await service.mark_read("does-not-exist", ALICE)

    @pytest.mark.asyncio
    async def test_marked_message_not_drained(self, alice_and_bob):
        service = await alice_and_bob()
        envelope_id = await service.send(BOB, ALICE, "one")
        await service.send(BOB, ALICE, "two")
        await service.mark_read(envelope_id, ALICE)

        views = await service.drain_inbox(ALICE)
        assert [v.result.plaintext for v in views] == ["two"]


class TestStatelessCrypto:

    @pytest.mark.asyncio
    async def test_encrypt_for_then_decrypt_own(self, alice_and_bob):
        service = await alice_and_bob()
        ciphertext = await service.encrypt_for(ALICE, "secret")
        assert await service.decrypt_own(ALICE, ciphertext) == "secret"
        assert await service.ledger.list_unread(ALICE) == []

    @pytest.mark.asyncio
    async def test_other_user_cannot_decrypt(self, alice_and_bob):
        service = await alice_and_bob()
        ciphertext = await service.encrypt_for(ALICE, "secret")
        with pytest.raises(CipherError):
            await service.decrypt_own(BOB, ciphertext)
