import pytest

from quizmaster.core.error import DomainErrorCode, QuizDomainError


@pytest.mark.asyncio
async def test_filter_orders_by_join_time(player_repository, players):
    for player in reversed(players):
        await player_repository.create("ABC123", player)

    loaded = await player_repository.filter("ABC123")

    assert [player.id for player in loaded] == ["host-1", "p-2", "p-3"]


@pytest.mark.asyncio
async def test_document_shape(store, player_repository, players):
    await player_repository.create("ABC123", players[1])

    document = (await store.get("quizRooms/ABC123/players/p-2")).to_dict()

    assert document == {
        "id": "p-2",
        "name": "Bob",
        "score": 0,
        "isHost": False,
        "readyForNext": False,
        "joinedAt": 2_000,
        "lastAnsweredIndex": None,
    }


@pytest.mark.asyncio
async def test_get_or_raise_missing(player_repository):
    with pytest.raises(QuizDomainError) as exc_info:
        await player_repository.get_or_raise("ABC123", "ghost")

    assert exc_info.value.code == DomainErrorCode.PLAYER_NOT_FOUND


@pytest.mark.asyncio
async def test_reset_ready_flags(player_repository, players):
    for player in players:
        await player_repository.create(
            "ABC123", player.model_copy(update={"ready_for_next": True})
        )

    failed = await player_repository.reset_ready_flags("ABC123", players)

    assert failed == []
    assert not any(p.ready_for_next for p in await player_repository.filter("ABC123"))


@pytest.mark.asyncio
async def test_reset_ready_flags_reports_failures(player_repository, players):
    await player_repository.create("ABC123", players[0])

    failed = await player_repository.reset_ready_flags("ABC123", players)

    assert failed == ["p-2", "p-3"]


@pytest.mark.asyncio
async def test_delete_missing_player_is_noop(store, player_repository, players):
    await player_repository.create("ABC123", players[0])

    await player_repository.delete("ABC123", "ghost")

    assert store.paths() == ["quizRooms/ABC123/players/host-1"]
