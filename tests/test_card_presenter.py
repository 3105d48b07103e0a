import pytest

from FlashcardsModule.card_presenter import CardPresenter, Orientation, PresenterState
from FlashcardsModule.errors import ContractViolation
from FlashcardsModule.feedback import Feedback
from FlashcardsModule.review_session import Judgment, SessionPhase


@pytest.fixture
def presenter(vocab, scheduler):
    p = CardPresenter(vocab, scheduler=scheduler, feedback_delay_ms=400)
    p.start()
    return p


def test_start_enters_studying_front_face(presenter, vocab):
    assert presenter.phase is PresenterState.STUDYING
    assert presenter.flipped is False
    assert presenter.current_item() == vocab[0]
    assert presenter.progress() == (1, 3)


def test_start_without_items_is_rejected(scheduler):
    with pytest.raises(ContractViolation):
        CardPresenter([], scheduler=scheduler).start()


def test_flip_toggles_face(presenter):
    presenter.flip()
    assert presenter.flipped is True
    assert presenter.visible_face().side == "back"
    presenter.flip()
    assert presenter.visible_face().side == "front"


def test_judgment_is_recorded_before_the_card_changes(presenter, scheduler, vocab):
    presenter.flip()
    presenter.judge(Judgment.FORGOT)

    assert presenter.phase is PresenterState.AWAITING_ADVANCE
    assert presenter.feedback is Feedback.WRONG
    assert presenter.session.next_round_queue == [0]
    assert presenter.session.current_item_index() == 1
    # still showing the judged card
    assert presenter.current_item() == vocab[0]
    assert presenter.progress() == (1, 3)

    scheduler.advance(399)
    assert presenter.phase is PresenterState.AWAITING_ADVANCE
    scheduler.advance(1)
    assert presenter.phase is PresenterState.STUDYING
    assert presenter.feedback is Feedback.NONE
    assert presenter.flipped is False
    assert presenter.current_item() == vocab[1]
    assert presenter.progress() == (2, 3)


def test_known_sets_correct_feedback(presenter):
    presenter.judge(Judgment.KNOWN)
    assert presenter.feedback is Feedback.CORRECT


def test_no_second_judgment_while_awaiting(presenter):
    presenter.judge(Judgment.KNOWN)
    with pytest.raises(ContractViolation):
        presenter.judge(Judgment.KNOWN)
    with pytest.raises(ContractViolation):
        presenter.flip()


def test_rounds_and_completion(presenter, scheduler, vocab):
    for outcome in (Judgment.FORGOT, Judgment.KNOWN, Judgment.FORGOT):
        presenter.judge(outcome)
        scheduler.advance(400)
    assert presenter.phase is PresenterState.ROUND_SUMMARY
    assert presenter.words_to_review() == 2
    assert presenter.ever_forgotten() == {"abundant", "candid"}

    presenter.continue_session()
    assert presenter.phase is PresenterState.STUDYING
    assert presenter.progress() == (1, 2)
    assert presenter.current_item() == vocab[0]

    presenter.judge(Judgment.KNOWN)
    scheduler.advance(400)
    presenter.judge(Judgment.KNOWN)
    scheduler.advance(400)
    assert presenter.phase is PresenterState.ROUND_SUMMARY
    presenter.continue_session()
    assert presenter.phase is PresenterState.SESSION_COMPLETE
    assert presenter.ever_forgotten() == {"abundant", "candid"}


def test_continue_only_from_round_summary(presenter):
    with pytest.raises(ContractViolation):
        presenter.continue_session()


def test_orientation_toggle_forces_front_face(presenter, vocab):
    presenter.flip()
    presenter.set_orientation(Orientation.REVERSE)
    assert presenter.flipped is False
    face = presenter.visible_face()
    assert face.side == "front"
    assert face.definition == vocab[0].definition
    assert face.word is None


def test_faces_per_orientation(presenter, vocab):
    item = vocab[0]
    front = presenter.visible_face()
    assert (front.word, front.ipa, front.definition) == (item.word, item.ipa, None)
    assert len(front.images) == 3

    presenter.flip()
    back = presenter.visible_face()
    assert back.definition == item.definition
    assert back.example == item.example
    assert back.images == []

    presenter.toggle_orientation()
    presenter.flip()
    reverse_back = presenter.visible_face()
    assert reverse_back.word == item.word
    assert reverse_back.ipa == item.ipa
    assert reverse_back.definition is None
    assert len(reverse_back.images) == 3


def test_orientation_rejected_after_completion(vocab, scheduler):
    p = CardPresenter(vocab[:1], scheduler=scheduler)
    p.start()
    p.judge(Judgment.KNOWN)
    scheduler.advance(400)
    p.continue_session()
    assert p.phase is PresenterState.SESSION_COMPLETE
    with pytest.raises(ContractViolation):
        p.set_orientation(Orientation.REVERSE)


def test_close_cancels_pending_timer(vocab, scheduler):
    p = CardPresenter(vocab, scheduler=scheduler)
    p.start()
    p.judge(Judgment.FORGOT)
    handle = scheduler.pending()[0]
    p.close()
    assert handle.cancelled
    assert p.phase is PresenterState.IDLE

    p.start()
    assert p.ever_forgotten() == frozenset()
    scheduler.advance(1000)
    assert p.phase is PresenterState.STUDYING
    assert p.progress() == (1, 3)
    assert p.session.next_round_queue == []


def test_stale_timer_callback_does_not_touch_new_session(vocab, scheduler):
    p = CardPresenter(vocab, scheduler=scheduler)
    p.start()
    p.judge(Judgment.KNOWN)
    stale = scheduler.pending()[0]
    p.close()
    p.start()
    p.flip()
    # simulate a timer thread that fired despite cancellation
    stale.callback()
    assert p.phase is PresenterState.STUDYING
    assert p.flipped is True
    assert p.progress() == (1, 3)


def test_items_are_copied_not_mutated(vocab, scheduler):
    original = list(vocab)
    p = CardPresenter(vocab, scheduler=scheduler)
    p.start()
    vocab.clear()
    assert p.current_item() == original[0]
    assert len(p.items) == 3


def test_feedback_sound_goes_to_sink(vocab, scheduler):
    played = []
    p = CardPresenter(vocab, scheduler=scheduler, sound_sink=played.append)
    p.start()
    p.judge(Judgment.KNOWN)
    assert len(played) == 1
    assert played[0][:4] == b"RIFF"


def test_broken_sound_sink_does_not_break_judgment(vocab, scheduler):
    def sink(_):
        raise RuntimeError("no audio device")

    p = CardPresenter(vocab, scheduler=scheduler, sound_sink=sink)
    p.start()
    p.judge(Judgment.FORGOT)
    assert p.session.next_round_queue == [0]


def test_on_change_called_after_delayed_advance(vocab, scheduler):
    seen = []
    p = CardPresenter(vocab, scheduler=scheduler, on_change=lambda pr: seen.append(pr.phase))
    p.start()
    p.judge(Judgment.KNOWN)
    scheduler.advance(400)
    assert seen == [
        PresenterState.STUDYING,
        PresenterState.AWAITING_ADVANCE,
        PresenterState.STUDYING,
    ]


def test_speak_current_uses_word_and_example(vocab, scheduler):
    class RecordingSpeech:
        def __init__(self):
            self.calls = []

        def speak_word_and_example(self, word, example):
            self.calls.append((word, example))

        def cancel(self):
            self.calls.append("cancel")

    speech = RecordingSpeech()
    p = CardPresenter(vocab, scheduler=scheduler, speech=speech)
    p.start()
    p.speak_current()
    p.close()
    assert speech.calls == [(vocab[0].word, vocab[0].example), "cancel"]


def test_session_phase_matches_presenter(presenter, scheduler):
    presenter.judge(Judgment.KNOWN)
    assert presenter.session.phase is SessionPhase.STUDYING


def test_snapshot_reports_displayed_card_while_awaiting(presenter, vocab):
    presenter.judge(Judgment.FORGOT)
    snap = presenter.snapshot()
    assert snap["phase"] == "awaiting_advance"
    assert snap["feedback"] == "wrong"
    assert snap["progress"] == {"position": 1, "total": 3}
    assert snap["card"]["word"] == vocab[0].word
    assert snap["ever_forgotten"] == [vocab[0].word]


def test_snapshot_after_close_is_idle(presenter):
    presenter.close()
    snap = presenter.snapshot()
    assert snap["phase"] == "idle"
    assert snap["card"] is None
    assert snap["progress"] is None
