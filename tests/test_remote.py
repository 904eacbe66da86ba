from __future__ import annotations

import asyncio

from ghja.errors import ErrorCategory, TranslationProviderError

from .conftest import REMOTE_SETTINGS, FakeProvider


def test_duplicate_strings_are_sent_once(make_coordinator, clock):
    async def scenario():
        provider = FakeProvider({"Open": "開く"})
        coordinator = make_coordinator(
            "<p>Open</p>" * 5, fake_provider=provider, **REMOTE_SETTINGS
        )

        clock.advance(0.3)
        await coordinator.remote.wait_idle()

        assert provider.calls == [["Open"]]
        assert coordinator.document.serialize().count("<p>開く</p>") == 5
        assert coordinator.remote.applied == 5

    asyncio.run(scenario())


def test_collection_is_debounced(make_coordinator, clock):
    async def scenario():
        provider = FakeProvider()
        coordinator = make_coordinator("<p>First text</p>", fake_provider=provider, **REMOTE_SETTINGS)

        coordinator.stop()

        clock.advance(0.2)
        coordinator.document.append_html(coordinator.document.body, "<p>Second text</p>")
        coordinator.engine.translate_text_nodes(only_unprocessed=True)
        clock.advance(0.2)
        assert provider.calls == []

        clock.advance(0.1)
        await coordinator.remote.wait_idle()
        assert provider.calls == [["First text", "Second text"]]

    asyncio.run(scenario())


def test_batches_are_capped(make_coordinator, clock):
    async def scenario():
        provider = FakeProvider()
        markup = "".join(f"<p>Text number {index}</p>" for index in range(60))
        coordinator = make_coordinator(markup, fake_provider=provider, **REMOTE_SETTINGS)

        clock.advance(0.3)
        await coordinator.remote.wait_idle()

        assert len(provider.calls) == 1
        assert provider.calls[0] == [f"Text number {index}" for index in range(50)]
        assert len(coordinator.remote.pending) == 10

    asyncio.run(scenario())


def test_deleted_fragment_is_skipped_when_response_arrives(make_coordinator, clock):
    async def scenario():
        gate = asyncio.Event()
        provider = FakeProvider({"Open": "開く", "Stays here": "ここに残る"}, gate=gate)
        coordinator = make_coordinator(
            "<div><p>Open</p></div><p>Stays here</p><p>Edited later</p>",
            fake_provider=provider,
            **REMOTE_SETTINGS,
        )
        document = coordinator.document

        clock.advance(0.3)
        await asyncio.sleep(0)
        assert provider.calls == [["Open", "Stays here", "Edited later"]]

        document.remove(document.body[0])
        gate.set()
        await coordinator.remote.wait_idle()

        html = document.serialize()
        assert "開く" not in html
        assert "<p>ここに残る</p>" in html
        assert list(coordinator.remote.errors) == []

    asyncio.run(scenario())


def test_changed_fragment_is_not_overwritten(make_coordinator, clock):
    async def scenario():
        gate = asyncio.Event()
        provider = FakeProvider({"Open": "開く"}, gate=gate)
        coordinator = make_coordinator("<p>Open</p>", fake_provider=provider, **REMOTE_SETTINGS)
        document = coordinator.document

        clock.advance(0.3)
        await asyncio.sleep(0)
        document.replace_children(document.body[0], "Open now")
        gate.set()
        await coordinator.remote.wait_idle()

        assert "<p>Open now</p>" in document.serialize()

    asyncio.run(scenario())


def test_provider_failure_discards_batch(make_coordinator, clock):
    async def scenario():
        provider = FakeProvider(error=TranslationProviderError("DeepL HTTP 500"))
        coordinator = make_coordinator(
            "<p>Issues</p><p>Unknown words</p>", fake_provider=provider, **REMOTE_SETTINGS
        )

        # The dictionary write re-arms the remote window at 0.25s.
        clock.advance(0.6)
        await coordinator.remote.wait_idle()

        html = coordinator.document.serialize()
        assert "<p>課題</p>" in html
        assert "<p>Unknown words</p>" in html
        assert len(coordinator.remote.pending) == 0
        [record] = coordinator.remote.errors
        assert record.category is ErrorCategory.PROVIDER
        assert "DeepL HTTP 500" in record.details

    asyncio.run(scenario())


def test_japanese_and_short_text_are_not_queued(make_coordinator):
    coordinator = make_coordinator(
        "<p>これはテストです</p><p>OK</p><p>Issues</p><p>Long enough</p>",
        fake_provider=FakeProvider(),
        **REMOTE_SETTINGS,
    )

    assert list(coordinator.remote.pending._texts) == ["Long enough"]


def test_aggressiveness_controls_minimum_length(make_coordinator):
    aggressive = make_coordinator(
        "<p>OK</p><p>Readme</p>",
        fake_provider=FakeProvider(),
        aggressiveness="aggressive",
        **REMOTE_SETTINGS,
    )
    conservative = make_coordinator(
        "<p>OK</p><p>Readme</p><p>A longer sentence</p>",
        fake_provider=FakeProvider(),
        aggressiveness="conservative",
        **REMOTE_SETTINGS,
    )

    assert list(aggressive.remote.pending._texts) == ["OK", "Readme"]
    assert list(conservative.remote.pending._texts) == ["A longer sentence"]


def test_missing_credentials_skip_remote_calls(make_coordinator, clock):
    async def scenario():
        provider = FakeProvider()
        coordinator = make_coordinator(
            "<p>Issues</p><p>Unknown words</p>",
            fake_provider=provider,
            use_remote_api=True,
            provider="DeepL",
            api_key="",
        )

        clock.advance(1)
        await coordinator.remote.wait_idle()

        assert provider.calls == []
        assert "<p>課題</p>" in coordinator.document.serialize()
        [record] = coordinator.remote.errors
        assert record.category is ErrorCategory.CONFIGURATION

    asyncio.run(scenario())


def test_remote_disabled_collects_nothing(make_coordinator, clock):
    provider = FakeProvider()
    coordinator = make_coordinator("<p>Unknown words</p>", fake_provider=provider)

    clock.advance(1)

    assert len(coordinator.remote.pending) == 0
    assert provider.calls == []


def test_untranslatable_strings_are_not_requeued(make_coordinator, clock):
    async def scenario():
        provider = FakeProvider()
        coordinator = make_coordinator("<p>octocat/hello</p>", fake_provider=provider, **REMOTE_SETTINGS)

        clock.advance(0.3)
        await coordinator.remote.wait_idle()
        coordinator.translate_now()
        clock.advance(1)
        await coordinator.remote.wait_idle()

        assert provider.calls == [["octocat/hello"]]

    asyncio.run(scenario())


def test_late_response_after_disable_is_dropped(make_coordinator, clock):
    async def scenario():
        gate = asyncio.Event()
        provider = FakeProvider({"Open the door": "ドアを開ける"}, gate=gate)
        coordinator = make_coordinator("<p>Open the door</p>", fake_provider=provider, **REMOTE_SETTINGS)

        clock.advance(0.3)
        await asyncio.sleep(0)
        coordinator.set_enabled(False)
        gate.set()
        await coordinator.remote.wait_idle()

        assert "<p>Open the door</p>" in coordinator.document.serialize()

    asyncio.run(scenario())


def test_attribute_translated_remotely_when_still_current(make_coordinator, clock):
    async def scenario():
        provider = FakeProvider({"Jump to file": "ファイルへ移動"})
        coordinator = make_coordinator(
            '<button title="Jump to file">x</button>', fake_provider=provider, **REMOTE_SETTINGS
        )

        await coordinator.remote.wait_idle()

        assert coordinator.document.body[0].get("title") == "ファイルへ移動"

    asyncio.run(scenario())


def test_attribute_changed_meanwhile_is_kept(make_coordinator, clock):
    async def scenario():
        gate = asyncio.Event()
        provider = FakeProvider({"Jump to file": "ファイルへ移動"}, gate=gate)
        coordinator = make_coordinator(
            '<input placeholder="Jump to file">', fake_provider=provider, **REMOTE_SETTINGS
        )
        element = coordinator.document.body[0]

        await asyncio.sleep(0)
        coordinator.document.set_attribute(element, "placeholder", "Find a file")
        gate.set()
        await coordinator.remote.wait_idle()

        assert element.get("placeholder") == "Find a file"

    asyncio.run(scenario())


def test_attribute_requests_are_not_duplicated_while_in_flight(make_coordinator):
    async def scenario():
        gate = asyncio.Event()
        provider = FakeProvider(gate=gate)
        coordinator = make_coordinator(
            '<input placeholder="Jump to file">', fake_provider=provider, **REMOTE_SETTINGS
        )

        coordinator.engine.translate_attributes()
        coordinator.engine.translate_attributes()
        await asyncio.sleep(0)
        gate.set()
        await coordinator.remote.wait_idle()

        assert provider.calls == [["Jump to file"]]

    asyncio.run(scenario())


def test_unexpected_provider_exception_is_recorded(make_coordinator, clock):
    async def scenario():
        provider = FakeProvider(error=RuntimeError("socket closed"))
        coordinator = make_coordinator(
            '<p>Unknown words</p><input placeholder="Jump to file">',
            fake_provider=provider,
            **REMOTE_SETTINGS,
        )

        clock.advance(0.3)
        await coordinator.remote.wait_idle()

        assert "<p>Unknown words</p>" in coordinator.document.serialize()
        records = coordinator.error_records()
        assert len(records) == 2
        assert all(record.category is ErrorCategory.PROVIDER for record in records)
        assert all("Unexpected RuntimeError: socket closed" in record.details for record in records)

    asyncio.run(scenario())
