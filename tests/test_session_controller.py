from __future__ import annotations

import threading

from agents.session_controller import SessionController
from utils.state import DecisionState

from conftest import submit_full_intent


def test_new_session_starts_pending_with_init_entries(controller: SessionController):
    snapshot = controller.get_snapshot()

    assert snapshot["session_id"].startswith("LOAN-")
    assert snapshot["decision_state"] == DecisionState.PENDING.value
    assert snapshot["confidence_vector"] == {
        "intent": 0, "identity": 0, "income": 0, "credit": 0, "overall": 0,
    }
    assert [e["action"] for e in snapshot["activity_log"]] == ["INIT", "READY"]


def test_reset_discards_everything(controller: SessionController):
    submit_full_intent(controller)
    controller.verify_identity_manual("ABCDE1234F")
    old_id = controller.get_snapshot()["session_id"]

    controller.reset_session()
    snapshot = controller.get_snapshot()

    assert snapshot["session_id"] != old_id
    assert snapshot["decision_state"] == DecisionState.PENDING.value
    assert set(snapshot["confidence_vector"].values()) == {0}
    assert snapshot["completed_steps"] == []
    assert snapshot["customer_data"]["loan_amount"] is None
    assert snapshot["verified_data"]["customer_profile"] is None
    assert snapshot["documents"]["pan"]["uploaded"] is False
    assert set(snapshot["documents"]["salary_slip"]) == {"uploaded", "filename", "timestamp", "method"}
    assert [e["action"] for e in snapshot["activity_log"]] == ["RESET"]


def test_snapshot_is_a_defensive_copy(controller: SessionController):
    submit_full_intent(controller)
    snapshot = controller.get_snapshot()

    snapshot["confidence_vector"]["intent"] = 0
    snapshot["completed_steps"].clear()
    snapshot["activity_log"].clear()
    snapshot["customer_data"]["loan_amount"] = 1

    fresh = controller.get_snapshot()
    assert fresh["confidence_vector"]["intent"] == 92
    assert fresh["completed_steps"] == ["Sales Agent"]
    assert fresh["activity_log"]
    assert fresh["customer_data"]["loan_amount"] == 1000000


def test_every_step_appends_to_the_journal(controller: SessionController):
    steps = [
        lambda: submit_full_intent(controller),
        lambda: controller.verify_identity_manual(),
        lambda: controller.run_underwriting(),
        lambda: controller.submit_salary_slip(),
        lambda: controller.generate_sanction(),
    ]
    size = len(controller.get_activity_log())
    for step in steps:
        step()
        new_size = len(controller.get_activity_log())
        assert new_size > size
        size = new_size


def test_journal_timestamps_are_ordered(controller: SessionController):
    submit_full_intent(controller)
    controller.verify_identity_manual()
    stamps = [entry["timestamp"] for entry in controller.get_activity_log()]
    assert stamps == sorted(stamps)


def test_concurrent_steps_do_not_interleave(controller: SessionController):
    threads = [
        threading.Thread(target=controller.submit_intent, kwargs={"purpose": "education"})
        for _ in range(8)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    # 8 x 22 clamps at the intent cap
    assert controller.get_snapshot()["confidence_vector"]["intent"] == 97
    captured = [e for e in controller.get_activity_log() if e["action"] == "CAPTURED"]
    assert len(captured) == 8
