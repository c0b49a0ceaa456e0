"""Tests for the editing session: edits, notifications, saving, documents."""

import asyncio

import pytest

from hotel_cms.core.actions import ArchitectAction, ArchitectResponse
from hotel_cms.core.sync.shard_sync import ShardSync
from hotel_cms.core.tree.navigation import find_node
from hotel_cms.core.validation import run_local_validation
from hotel_cms.models.node import ContentNode, HotelTemplate
from hotel_cms.session import EditorSession, NoDocumentError, SaveFailedError
from tests.unit.fakes import FakeArchitect, FakeClock, FakeDocumentStore


async def _open(gateway: ShardSync, hotel: ContentNode, clock: FakeClock) -> EditorSession:
    gateway.save("h1", hotel)
    session = EditorSession(gateway, clock=clock, autosave_delay=2.0, settle_delay=3.0)
    assert await session.open("h1")
    return session


def test_tree_requires_open_document(gateway: ShardSync) -> None:
    session = EditorSession(gateway, clock=FakeClock())
    with pytest.raises(NoDocumentError):
        _ = session.tree


def test_effective_edit_notifies_and_marks_dirty(gateway: ShardSync, hotel: ContentNode) -> None:
    async def scenario() -> None:
        session = await _open(gateway, hotel, FakeClock())
        seen: list[ContentNode] = []
        session.subscribe(seen.append)

        assert session.update_node("g2", {"value": "14:00"})
        assert len(seen) == 1
        assert seen[0] is session.tree
        assert session.status == "dirty"
        node = find_node(session.tree, "g2")
        assert node is not None
        assert node.value == "14:00"
        assert isinstance(node.extra["lastModified"], int)

    asyncio.run(scenario())


def test_noop_edits_return_false_and_stay_quiet(gateway: ShardSync, hotel: ContentNode) -> None:
    async def scenario() -> None:
        session = await _open(gateway, hotel, FakeClock())
        seen: list[ContentNode] = []
        session.subscribe(seen.append)

        assert not session.update_node("ghost", {"value": "x"})
        assert not session.delete_node("root")
        assert not session.move_node("dining", "m1", "inside")
        assert not session.insert_child("ghost", ContentNode(id="x"))
        assert seen == []
        assert session.status == "idle"

    asyncio.run(scenario())


def test_autosave_writes_to_the_remote_store(
    gateway: ShardSync, store: FakeDocumentStore, hotel: ContentNode
) -> None:
    async def scenario() -> None:
        clock = FakeClock()
        session = await _open(gateway, hotel, clock)
        session.delete_node("faq")
        session.add_child("root", name="Spa")
        clock.advance(2.0)
        await session.autosave.wait_for_save()

        assert session.status == "saved"
        order = store.docs["hotels/h1"]["childOrder"]
        assert order[:2] == ["gen", "dining"]
        assert "faq" not in order
        spa_id = order[-1]
        assert store.docs[f"hotels/h1/nodes/{spa_id}"]["type"] == "category"

    asyncio.run(scenario())


def test_save_now_raises_when_only_cached(
    gateway: ShardSync, store: FakeDocumentStore, hotel: ContentNode
) -> None:
    async def scenario() -> None:
        session = await _open(gateway, hotel, FakeClock())
        session.update_node("g1", {"value": "Grand"})
        store.fail = True
        with pytest.raises(SaveFailedError):
            await session.save_now()
        assert session.status == "error"
        cached = gateway.cache.get_tree("h1")
        assert cached is not None
        g1 = find_node(cached, "g1")
        assert g1 is not None and g1.value == "Grand"

    asyncio.run(scenario())


def test_save_now_without_document(gateway: ShardSync) -> None:
    session = EditorSession(gateway, clock=FakeClock())
    with pytest.raises(NoDocumentError):
        asyncio.run(session.save_now())


def test_open_unknown_document(gateway: ShardSync) -> None:
    session = EditorSession(gateway, clock=FakeClock())
    assert not asyncio.run(session.open("missing"))
    assert session.doc_id is None


def test_open_flushes_edits_of_previous_document(
    gateway: ShardSync, store: FakeDocumentStore, hotel: ContentNode
) -> None:
    async def scenario() -> None:
        session = await _open(gateway, hotel, FakeClock())
        gateway.save("h2", hotel)
        session.update_node("g1", {"value": "Renamed"})
        assert await session.open("h2")
        assert session.doc_id == "h2"
        assert store.docs["hotels/h1/nodes/gen"]["children"][0]["value"] == "Renamed"

    asyncio.run(scenario())


def test_create_blank_document(gateway: ShardSync, store: FakeDocumentStore) -> None:
    async def scenario() -> None:
        session = EditorSession(gateway, clock=FakeClock())
        doc_id = await session.create("Sea View")
        assert session.doc_id == doc_id
        assert session.tree.id == doc_id
        assert session.tree.name == "Sea View"
        assert store.docs[f"hotels/{doc_id}"]["name"] == "Sea View"

    asyncio.run(scenario())


def test_create_from_template_structure_only(gateway: ShardSync, hotel: ContentNode) -> None:
    async def scenario() -> None:
        template = HotelTemplate(
            id="t1", name="City", description="", created_at=0, data=hotel
        )
        session = EditorSession(gateway, clock=FakeClock())
        await session.create("Copy", template=template, keep_values=False)
        assert session.tree.name == "Copy"
        assert find_node(session.tree, "g3") is None
        assert len(session.tree.children) == 3

    asyncio.run(scenario())


def test_change_node_id(gateway: ShardSync, hotel: ContentNode) -> None:
    async def scenario() -> None:
        session = await _open(gateway, hotel, FakeClock())
        assert session.change_node_id("g1", "hotel-name").success
        assert not session.change_node_id("g2", "hotel-name").success
        assert find_node(session.tree, "hotel-name") is not None

    asyncio.run(scenario())


def test_ask_architect_applies_proposed_actions(gateway: ShardSync, hotel: ContentNode) -> None:
    async def scenario() -> None:
        session = await _open(gateway, hotel, FakeClock())
        architect = FakeArchitect(
            ArchitectResponse(
                summary="Moved parking to FAQ",
                actions=(
                    ArchitectAction("move", "g3", destination_id="faq"),
                    ArchitectAction("delete", "ghost"),
                ),
            )
        )
        summary, report = session.ask_architect(architect, "tidy up")
        assert summary == "Moved parking to FAQ"
        assert len(report.applied) == 1
        assert len(report.failed) == 1
        assert architect.instructions[0][1] == "tidy up"
        assert architect.instructions[0][0] is not session.tree
        faq = find_node(session.tree, "faq")
        assert faq is not None and faq.children[-1].id == "g3"

    asyncio.run(scenario())


def test_apply_fix_from_validation(gateway: ShardSync, hotel: ContentNode) -> None:
    async def scenario() -> None:
        session = await _open(gateway, hotel, FakeClock())
        issue = next(i for i in run_local_validation(session.tree) if i.node_id == "q2")
        assert session.apply_fix(issue)
        q2 = find_node(session.tree, "q2")
        assert q2 is not None and q2.extra["answer"] == "Answer pending."

    asyncio.run(scenario())


def test_close_saves_pending_edits(
    gateway: ShardSync, store: FakeDocumentStore, hotel: ContentNode
) -> None:
    async def scenario() -> None:
        clock = FakeClock()
        session = await _open(gateway, hotel, clock)
        session.update_node("g1", {"value": "Closing"})
        await session.close()
        assert store.docs["hotels/h1/nodes/gen"]["children"][0]["value"] == "Closing"
        assert clock.pending == 0

    asyncio.run(scenario())
