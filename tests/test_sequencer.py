"""Session sequencer tests."""

import pytest

from voice_collector.core.catalogue import Catalogue, DEFAULT_CATALOGUE
from voice_collector.core.errors import SessionComplete
from voice_collector.core.sequencer import SessionPosition, SessionSequencer


def test_default_catalogue_shape():
    assert DEFAULT_CATALOGUE.items_per_run == 35
    assert DEFAULT_CATALOGUE.runs == 3
    assert DEFAULT_CATALOGUE.total_slots == 105
    assert DEFAULT_CATALOGUE.items[0] == "A"
    assert DEFAULT_CATALOGUE.items[-1] == "Screening"


def test_catalogue_rejects_zero_runs():
    with pytest.raises(ValueError):
        Catalogue(runs=0)


def test_advance_walks_every_slot_then_completes():
    sequencer = SessionSequencer()
    for _ in range(104):
        assert sequencer.advance() is False
    assert sequencer.position == SessionPosition(3, 34)
    assert sequencer.current_item == "Screening"

    assert sequencer.advance() is True
    assert sequencer.is_complete

    with pytest.raises(SessionComplete):
        sequencer.advance()


def test_advance_rolls_over_to_next_run():
    sequencer = SessionSequencer()
    for _ in range(35):
        sequencer.advance()
    assert sequencer.position == SessionPosition(2, 0)
    assert sequencer.current_item == "A"


def test_redo_on_first_slot_is_noop():
    sequencer = SessionSequencer()
    assert sequencer.redo() is False
    assert sequencer.position == SessionPosition(1, 0)


def test_redo_from_start_of_run_goes_to_last_item_of_previous_run():
    sequencer = SessionSequencer()
    for _ in range(35):
        sequencer.advance()
    assert sequencer.redo() is True
    assert sequencer.position == SessionPosition(1, 34)


def test_redo_within_run_steps_back_one_item():
    sequencer = SessionSequencer()
    sequencer.advance()
    sequencer.advance()
    sequencer.redo()
    assert sequencer.position == SessionPosition(1, 1)


def test_no_transition_leaves_complete_state():
    sequencer = SessionSequencer(Catalogue(items=("A", "B"), runs=1))
    sequencer.advance()
    sequencer.advance()
    with pytest.raises(SessionComplete):
        sequencer.redo()
    assert sequencer.is_complete


def test_progress_is_monotonic_and_reaches_100():
    sequencer = SessionSequencer()
    readings = [sequencer.progress()]
    while not sequencer.is_complete:
        sequencer.advance()
        readings.append(sequencer.progress())

    assert readings[0] == 0
    assert readings == sorted(readings)
    assert readings[-1] == 100


def test_progress_does_not_increase_on_redo():
    sequencer = SessionSequencer()
    for _ in range(40):
        sequencer.advance()
    before = sequencer.progress()
    sequencer.redo()
    assert sequencer.progress() < before
    assert sequencer.completed_slots() == 39
