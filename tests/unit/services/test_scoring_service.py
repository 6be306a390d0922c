import pytest

from quizmaster.core.error import DomainErrorCode, QuizDomainError
from quizmaster.models.room import RoomState
from quizmaster.schemas.game import AdvanceOutcome
from quizmaster.services.scoring_service import compute_award, compute_speed_bonus


@pytest.mark.parametrize(
    ("elapsed_ms", "bonus"),
    [
        (0, 5),
        (-250, 5),
        (1_000, 5),
        (3_000, 4),
        (6_000, 3),
        (7_500, 3),
        (12_000, 1),
        (14_999, 0),
        (15_000, 0),
        (60_000, 0),
    ],
)
def test_compute_speed_bonus(elapsed_ms, bonus):
    assert compute_speed_bonus(elapsed_ms) == bonus


@pytest.mark.parametrize(
    ("is_correct", "elapsed_ms", "award"),
    [
        (True, 0, 15),
        (True, 15_000, 10),
        (True, 20_000, 10),
        (False, 0, 0),
        (False, 20_000, 0),
    ],
)
def test_compute_award(is_correct, elapsed_ms, award):
    assert compute_award(is_correct, elapsed_ms) == award


@pytest.fixture
def started(room_service, lobby):
    async def start():
        return await room_service.start_game(lobby.room_id, "host-1")

    return start


class TestSubmitAnswer:
    @pytest.mark.asyncio
    async def test_correct_answer_awards_points(
        self, scoring_service, player_repository, started, clock
    ):
        room = await started()
        question = room.quiz.questions[0]
        clock.advance(7_500)

        result = await scoring_service.submit_answer(
            room.room_id, "p-2", 0, question, question.correct
        )

        assert result.is_correct is True
        assert result.speed_bonus == 3
        assert result.points_awarded == 13
        assert result.correct_option == "Paris"
        assert result.explanation == "Paris has been the capital since 987."

        player = await player_repository.get(room.room_id, "p-2")
        assert player.score == 13
        assert player.last_answered_index == 0

    @pytest.mark.asyncio
    async def test_wrong_answer_awards_nothing(
        self, scoring_service, player_repository, started
    ):
        room = await started()
        question = room.quiz.questions[0]
        wrong = (question.correct + 1) % len(question.options)

        result = await scoring_service.submit_answer(
            room.room_id, "p-2", 0, question, wrong
        )

        assert result.is_correct is False
        assert result.points_awarded == 0
        assert result.correct_index == question.correct
        assert (await player_repository.get(room.room_id, "p-2")).score == 0

    @pytest.mark.asyncio
    async def test_repeat_answer_is_not_counted_twice(
        self, scoring_service, player_repository, started
    ):
        room = await started()
        question = room.quiz.questions[0]

        first = await scoring_service.submit_answer(
            room.room_id, "p-2", 0, question, question.correct
        )
        second = await scoring_service.submit_answer(
            room.room_id, "p-2", 0, question, question.correct
        )

        assert first.points_awarded == 15
        assert second.duplicate is True
        assert second.points_awarded == 0
        assert (await player_repository.get(room.room_id, "p-2")).score == 15

    @pytest.mark.asyncio
    async def test_out_of_range_option(self, scoring_service, started):
        room = await started()

        with pytest.raises(QuizDomainError) as exc_info:
            await scoring_service.submit_answer(
                room.room_id, "p-2", 0, room.quiz.questions[0], 4
            )

        assert exc_info.value.code == DomainErrorCode.INVALID_ANSWER

    @pytest.mark.asyncio
    async def test_score_write_failure_is_reported(
        self, scoring_service, started, mocker
    ):
        room = await started()
        question = room.quiz.questions[0]
        mocker.patch.object(
            scoring_service.player_repository,
            "update",
            side_effect=QuizDomainError(
                code=DomainErrorCode.STORE_ERROR, message="write failed"
            ),
        )

        result = await scoring_service.submit_answer(
            room.room_id, "p-2", 0, question, question.correct
        )

        assert result.is_correct is True
        assert result.points_awarded == 0
        assert result.error == "write failed"

    @pytest.mark.asyncio
    async def test_missing_start_time_gives_no_bonus(
        self, scoring_service, room_repository, player_repository, started
    ):
        room = await started()
        await room_repository.update(room.room_id, question_start_time=None)
        question = room.quiz.questions[0]

        result = await scoring_service.submit_answer(
            room.room_id, "p-2", 0, question, question.correct
        )

        assert result.points_awarded == 10
        assert (await player_repository.get(room.room_id, "p-2")).score == 10


class TestMarkReady:
    @pytest.mark.asyncio
    async def test_mark_ready(self, scoring_service, player_repository, lobby):
        await scoring_service.mark_ready(lobby.room_id, "p-2")

        assert (await player_repository.get(lobby.room_id, "p-2")).ready_for_next

    @pytest.mark.asyncio
    async def test_mark_ready_missing_player(self, scoring_service, lobby):
        with pytest.raises(QuizDomainError) as exc_info:
            await scoring_service.mark_ready(lobby.room_id, "ghost")

        assert exc_info.value.code == DomainErrorCode.DOCUMENT_NOT_FOUND


class TestAdvanceQuestion:
    async def _all_ready(self, scoring_service, room_id):
        for player_id in ("host-1", "p-2"):
            await scoring_service.mark_ready(room_id, player_id)

    @pytest.mark.asyncio
    async def test_advance_moves_to_next_question(
        self, scoring_service, room_repository, player_repository, started, clock
    ):
        room = await started()
        await self._all_ready(scoring_service, room.room_id)
        clock.advance(9_000)

        outcome = await scoring_service.advance_question(
            room.room_id, expected_index=0, require_all_ready=True
        )

        stored = await room_repository.get(room.room_id)
        assert outcome == AdvanceOutcome.ADVANCED
        assert stored.current_question_index == 1
        assert stored.question_start_time == clock.now
        assert not any(
            p.ready_for_next for p in await player_repository.filter(room.room_id)
        )

    @pytest.mark.asyncio
    async def test_advance_past_last_question_finishes(
        self, scoring_service, room_repository, started
    ):
        room = await started()
        await scoring_service.advance_question(room.room_id)

        outcome = await scoring_service.advance_question(room.room_id)

        stored = await room_repository.get(room.room_id)
        assert outcome == AdvanceOutcome.FINISHED
        assert stored.state == RoomState.FINISHED
        assert stored.current_question_index == 1

    @pytest.mark.asyncio
    async def test_advance_skips_when_not_everyone_ready(
        self, scoring_service, room_repository, started
    ):
        room = await started()
        await scoring_service.mark_ready(room.room_id, "p-2")

        outcome = await scoring_service.advance_question(
            room.room_id, expected_index=0, require_all_ready=True
        )

        assert outcome == AdvanceOutcome.SKIPPED
        assert (await room_repository.get(room.room_id)).current_question_index == 0

    @pytest.mark.asyncio
    async def test_advance_skips_stale_index(
        self, scoring_service, room_repository, started
    ):
        room = await started()
        await scoring_service.advance_question(room.room_id, expected_index=0)

        outcome = await scoring_service.advance_question(
            room.room_id, expected_index=0
        )

        assert outcome == AdvanceOutcome.SKIPPED
        assert (await room_repository.get(room.room_id)).current_question_index == 1

    @pytest.mark.asyncio
    async def test_advance_skips_in_lobby(self, scoring_service, lobby):
        outcome = await scoring_service.advance_question(lobby.room_id)

        assert outcome == AdvanceOutcome.SKIPPED
