from utils.activity_log import ActivityJournal
from utils.confidence import ConfidenceModel, Dimension, weighted_overall


def test_overall_is_weighted_sum_of_capped_values():
    model = ConfidenceModel()
    model.overwrite(Dimension.INTENT, 92)
    model.overwrite(Dimension.IDENTITY, 90)
    model.overwrite(Dimension.INCOME, 80)
    model.overwrite(Dimension.CREDIT, 85)

    # 92*.30 + 90*.25 + 80*.20 + 85*.25 = 87.35
    assert model.recompute_overall() == 87


def test_overall_rounds_half_up():
    assert weighted_overall({"intent": 5, "identity": 0, "income": 0, "credit": 0}) == 2  # 1.5
    assert weighted_overall({"intent": 15, "identity": 0, "income": 0, "credit": 0}) == 5  # 4.5


def test_structural_ceiling_is_96_even_when_raw_values_exceed_caps():
    assert weighted_overall({"intent": 100, "identity": 100, "income": 100, "credit": 100}) == 96
    assert weighted_overall({"intent": 500, "identity": 500, "income": 500, "credit": 500}) == 96


def test_add_clamps_running_value_at_cap():
    model = ConfidenceModel()
    model.add(Dimension.INTENT, 80)
    model.add(Dimension.INTENT, 80)
    assert model.raw(Dimension.INTENT) == 97


def test_raise_to_never_regresses_and_overwrite_can_lower():
    model = ConfidenceModel()
    model.overwrite("income", 60)
    model.raise_to("income", 45)
    assert model.raw("income") == 60

    model.overwrite("income", 30)
    assert model.raw("income") == 30

    model.raise_to("income", 150)
    assert model.raw("income") == 92


def test_vector_reads_are_capped():
    model = ConfidenceModel()
    model.overwrite(Dimension.IDENTITY, 150)
    vector = model.vector()
    assert vector.identity == 99
    assert vector.get("identity") == 99


def test_stagnation_flag_after_three_unchanged_cycles():
    model = ConfidenceModel()
    journal = ActivityJournal()

    model.recompute_overall(journal)
    model.recompute_overall(journal)
    assert len(journal) == 0

    model.recompute_overall(journal)
    assert journal.actions() == ["FALLBACK_AWARE"]
    assert "Manual review fallback" in journal.entries()[0].impact


def test_stagnation_counter_resets_on_change():
    model = ConfidenceModel()
    journal = ActivityJournal()
    model.recompute_overall(journal)
    model.recompute_overall(journal)
    assert model.stagnant_cycles == 2

    model.overwrite(Dimension.INTENT, 50)
    model.recompute_overall(journal)
    assert model.stagnant_cycles == 0
    assert len(journal) == 0
